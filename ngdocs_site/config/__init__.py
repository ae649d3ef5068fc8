"""Load and validate the YAML configuration for ngdocs site builds.

This subpackage parses the project's ``ngdocs.yaml`` file, merges shared
``defaults`` with per-target overrides, expands source globs, and produces
typed dataclasses (:class:`SiteConfig`, :class:`SectionTarget`,
:class:`SiteOptions`) that :class:`~ngdocs_site.builder.SiteBuilder` consumes.

Examples
--------
>>> from pathlib import Path
>>> from ngdocs_site.config import load_site_config
>>> site = load_site_config(Path("config/ngdocs.yaml"))  # doctest: +SKIP
>>> target = site.get_target("guide")  # doctest: +SKIP
>>> target.options.dest  # doctest: +SKIP
PosixPath('config/docs')
"""

from .loader import load_site_config
from .models import (
    ConfigurationError,
    SectionTarget,
    SiteConfig,
    SiteConfigError,
    SiteOptions,
    SourceGroup,
)

__all__ = [
    "ConfigurationError",
    "SectionTarget",
    "SiteConfig",
    "SiteConfigError",
    "SiteOptions",
    "SourceGroup",
    "load_site_config",
]
