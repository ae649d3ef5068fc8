"""Load site configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from .helpers import _build_groups, _merge_options, _optional_str
from .models import SectionTarget, SiteConfig, SiteConfigError, SiteOptions


def load_site_config(path: Path) -> SiteConfig:
    """Load the YAML configuration describing the documentation targets.

    Parameters
    ----------
    path : Path
        Filesystem path to the YAML configuration file (for example,
        ``config/ngdocs.yaml``). Relative paths inside the file resolve
        against the file's directory.

    Returns
    -------
    SiteConfig
        Parsed configuration with one :class:`SectionTarget` per entry of
        ``targets``, each carrying the shared ``defaults`` merged with its own
        overrides.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    SiteConfigError
        If the top-level structure is not a mapping, no targets are defined,
        or an unknown option key is used.

    Examples
    --------
    >>> from pathlib import Path
    >>> from ngdocs_site.config import load_site_config
    >>> config = load_site_config(Path("config/ngdocs.yaml"))  # doctest: +SKIP
    >>> config.get_target("api").section  # doctest: +SKIP
    'api'
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise SiteConfigError(msg)
    raw: dict[str, typ.Any] = dict(loaded)
    base_dir = path.parent

    defaults = _merge_options(
        SiteOptions(), raw.get("defaults") or {}, relative_to=base_dir
    )
    targets_raw = raw.get("targets") or {}
    if not isinstance(targets_raw, dict) or not targets_raw:
        msg = "No targets defined in configuration."
        raise SiteConfigError(msg)

    targets: dict[str, SectionTarget] = {}
    for name, payload in targets_raw.items():
        match payload:
            case dict():
                targets[str(name)] = _build_target(str(name), payload, defaults, base_dir)
            case list() | str():
                targets[str(name)] = _build_target(
                    str(name), {"files": payload}, defaults, base_dir
                )
            case _:
                continue

    project = _optional_str(raw.get("project"))
    return SiteConfig(
        targets=targets,
        project_path=base_dir / project if project else None,
        reader=_optional_str(raw.get("reader")),
    )


def _build_target(
    name: str,
    payload: typ.Mapping[str, typ.Any],
    defaults: SiteOptions,
    base_dir: Path,
) -> SectionTarget:
    """Build a SectionTarget for a single entry using defaults and overrides."""
    overrides = payload.get("options") or {}
    if not isinstance(overrides, dict):
        msg = f"Target '{name}' has non-mapping 'options'."
        raise SiteConfigError(msg)
    return SectionTarget(
        name=name,
        options=_merge_options(defaults, overrides, relative_to=base_dir),
        groups=_build_groups(payload.get("files"), base_dir),
    )


__all__ = ["load_site_config"]
