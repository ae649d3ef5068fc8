"""Typed dataclasses describing ngdocs site configuration structures."""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path

from .._constants import ALL_TARGET, DEFAULT_SECTION


class ConfigurationError(ValueError):
    """Raised when a run cannot start or continue because of bad configuration."""


class SiteConfigError(ConfigurationError):
    """Raised when the site configuration is invalid or incomplete."""


@dc.dataclass(slots=True)
class SiteOptions:
    """Options recognised by a single site-assembly run.

    Attributes
    ----------
    dest : Path
        Destination directory for the generated site.
    start_page : str
        Route the site shell opens first.
    scripts : list[str]
        Scripts loaded by the shell; nested lists are flattened at run time.
    styles : list[str]
        Stylesheets loaded by the shell.
    title : str | None
        Site title; ``None`` falls back to the project descriptor.
    source_link, edit_link : str | bool | None
        Link templates, ``True`` for the repository host defaults, or a
        falsy value to omit the links.
    """

    dest: Path = Path("docs")
    start_page: str = "/api"
    scripts: list[object] = dc.field(default_factory=list)
    styles: list[str] = dc.field(default_factory=list)
    title: str | None = None
    html5_mode: bool = False
    edit_example: bool = True
    source_link: str | bool | None = True
    edit_link: str | bool | None = True
    inline_partials: bool = False
    nav_template: Path | None = None
    generate_partials_todo_index: bool = False
    do_not_generate_standard_index_html: bool = False
    image: str | None = None
    title_link: str | None = None
    image_link: str | None = None
    best_match: bool = False
    analytics: dict[str, object] | None = None
    discussions: dict[str, object] | None = None
    template: Path | None = None
    defer_load: bool = False


@dc.dataclass(slots=True)
class SourceGroup:
    """A set of source files rendered under one section title."""

    src: list[Path]
    title: str | None = None
    api: bool | None = None


@dc.dataclass(slots=True)
class SectionTarget:
    """One configured invocation: a section plus its sources and options."""

    name: str
    options: SiteOptions
    groups: list[SourceGroup] = dc.field(default_factory=list)

    @property
    def section(self) -> str:
        """Return the manifest section populated by this target."""
        return DEFAULT_SECTION if self.name == ALL_TARGET else self.name


@dc.dataclass(slots=True)
class SiteConfig:
    """Collection of section targets alongside shared settings."""

    targets: dict[str, SectionTarget]
    project_path: Path | None = None
    reader: str | None = None

    def get_target(self, name: str) -> SectionTarget:
        """Return the named target or raise a descriptive ``KeyError``."""
        try:
            return self.targets[name]
        except KeyError as exc:
            available = ", ".join(sorted(self.targets))
            msg = f"Unknown target '{name}'. Known targets: {available}"
            raise KeyError(msg) from exc


__all__ = [
    "ConfigurationError",
    "SectionTarget",
    "SiteConfig",
    "SiteConfigError",
    "SiteOptions",
    "SourceGroup",
]
