"""Read repository metadata from the documented project's descriptor.

Link templates need the repository remote and the project version. Both come
from ``package.json`` (``version`` and ``repository.url``) or from
``pyproject.toml`` (``[project].version`` and a repository-like entry in
``[project.urls]``). A project without a descriptor simply produces an empty
:class:`ProjectDescriptor`; links that depend on it are then omitted.
"""

from __future__ import annotations

import dataclasses as dc
import tomllib
import typing as typ
from pathlib import Path

import msgspec
import msgspec.json

from .config import ConfigurationError

DESCRIPTOR_FILENAMES = ("package.json", "pyproject.toml")
_REPOSITORY_URL_KEYS = ("repository", "source", "source code", "code", "homepage")


@dc.dataclass(frozen=True, slots=True)
class ProjectDescriptor:
    """Subset of project metadata used by the site build."""

    name: str | None = None
    title: str | None = None
    version: str | None = None
    repository_url: str | None = None

    @property
    def display_title(self) -> str:
        """Return the title, then the name, then an empty string."""
        return self.title or self.name or ""


def load_project_descriptor(
    path: Path | None = None, *, search_dir: Path | None = None
) -> ProjectDescriptor:
    """Load the descriptor at ``path`` or discover one in ``search_dir``.

    Raises
    ------
    ConfigurationError
        If the descriptor exists but cannot be parsed.
    """
    if path is None:
        base = search_dir or Path.cwd()
        path = next(
            (base / name for name in DESCRIPTOR_FILENAMES if (base / name).is_file()),
            None,
        )
        if path is None:
            return ProjectDescriptor()
    elif not path.is_file():
        return ProjectDescriptor()

    if path.suffix == ".toml":
        return _load_pyproject(path)
    return _load_package_json(path)


def _load_package_json(path: Path) -> ProjectDescriptor:
    try:
        data = msgspec.json.decode(path.read_bytes())
    except msgspec.DecodeError as exc:
        msg = f"Unable to parse project descriptor '{path}': {exc}"
        raise ConfigurationError(msg) from exc
    if not isinstance(data, dict):
        msg = f"Project descriptor '{path}' must contain a JSON object."
        raise ConfigurationError(msg)

    repository = data.get("repository")
    match repository:
        case {"url": str() as url}:
            repository_url: str | None = url
        case str():
            repository_url = repository
        case _:
            repository_url = None
    return ProjectDescriptor(
        name=_as_str(data.get("name")),
        title=_as_str(data.get("title")),
        version=_as_str(data.get("version")),
        repository_url=repository_url,
    )


def _load_pyproject(path: Path) -> ProjectDescriptor:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Unable to parse project descriptor '{path}': {exc}"
        raise ConfigurationError(msg) from exc
    project: dict[str, typ.Any] = data.get("project") or {}
    urls = {str(key).lower(): value for key, value in (project.get("urls") or {}).items()}
    repository_url = next(
        (_as_str(urls[key]) for key in _REPOSITORY_URL_KEYS if key in urls), None
    )
    return ProjectDescriptor(
        name=_as_str(project.get("name")),
        version=_as_str(project.get("version")),
        repository_url=repository_url,
    )


def _as_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


__all__ = ["DESCRIPTOR_FILENAMES", "ProjectDescriptor", "load_project_descriptor"]
