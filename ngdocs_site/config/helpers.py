"""Utility helpers shared by the ngdocs configuration loader."""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ
from pathlib import Path

from .models import SiteConfigError, SiteOptions, SourceGroup

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")
_PATH_OPTIONS = frozenset({"dest", "nav_template", "template"})
_LIST_OPTIONS = frozenset({"scripts", "styles"})
OPTION_NAMES = frozenset(field.name for field in dc.fields(SiteOptions))


def _normalize_option_key(key: str) -> str:
    """Return the snake_case spelling of an option key (``startPage`` too)."""
    return _CAMEL_BOUNDARY.sub(r"_\1", key).lower()


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _merge_options(
    base: SiteOptions,
    override: typ.Mapping[str, typ.Any] | None,
    *,
    relative_to: Path,
) -> SiteOptions:
    """Return ``base`` updated with a mapping of (camel or snake case) options."""
    if not override:
        return dc.replace(base)
    changes: dict[str, typ.Any] = {}
    for raw_key, value in override.items():
        key = _normalize_option_key(str(raw_key))
        if key not in OPTION_NAMES:
            msg = f"Unknown option '{raw_key}'."
            raise SiteConfigError(msg)
        if key in _PATH_OPTIONS and value is not None:
            value = _resolve_path(value, relative_to)
        elif key in _LIST_OPTIONS and isinstance(value, str):
            value = [value]
        changes[key] = value
    return dc.replace(base, **changes)


def _resolve_path(value: object, relative_to: Path) -> Path:
    path = Path(str(value))
    if path.is_absolute():
        return path
    return relative_to / path


def _split_glob(pattern: str, relative_to: Path) -> tuple[Path, str]:
    """Return the directory to glob from and the pattern relative to it."""
    path = Path(pattern)
    if path.is_absolute():
        return Path(path.anchor), str(path.relative_to(path.anchor))
    return relative_to, pattern


def _expand_sources(patterns: object, relative_to: Path) -> list[Path]:
    """Expand glob patterns into a sorted, de-duplicated list of paths.

    Patterns that match nothing are kept as literal paths so the build can
    skip them as absent inputs.
    """
    match patterns:
        case str():
            items = [patterns]
        case list() | tuple():
            items = [str(item) for item in patterns]
        case None:
            items = []
        case _:
            msg = "Source 'src' must be a string or a list of strings."
            raise SiteConfigError(msg)

    seen: dict[Path, None] = {}
    for pattern in items:
        if any(char in pattern for char in "*?["):
            root, relative = _split_glob(pattern, relative_to)
            matches = sorted(root.glob(relative))
            for match in matches:
                seen.setdefault(match, None)
        else:
            seen.setdefault(_resolve_path(pattern, relative_to), None)
    return list(seen)


def _build_groups(payload: object, relative_to: Path) -> list[SourceGroup]:
    """Build source groups from a target's ``files`` entry."""
    match payload:
        case None:
            return []
        case str():
            return [SourceGroup(src=_expand_sources(payload, relative_to))]
        case list():
            entries = payload
        case _:
            msg = "Target 'files' must be a list."
            raise SiteConfigError(msg)

    groups: list[SourceGroup] = []
    for entry in entries:
        if isinstance(entry, dict):
            api = entry.get("api")
            groups.append(
                SourceGroup(
                    src=_expand_sources(entry.get("src"), relative_to),
                    title=_optional_str(entry.get("title")),
                    api=bool(api) if api is not None else None,
                )
            )
        else:
            groups.append(SourceGroup(src=_expand_sources(entry, relative_to)))
    return groups


__all__ = [
    "OPTION_NAMES",
    "_build_groups",
    "_expand_sources",
    "_merge_options",
    "_normalize_option_key",
    "_optional_str",
]
