"""Persist the cross-run site manifest and regenerate the site index page.

Every build run owns exactly one *section* of the site. The manifest
(``js/docs-setup.js``) records the titles of all sections, the metadata of
every page and whether each section documents an API, so a run only replaces
the pages of its own section and leaves the rest untouched.

The file is written as a single assignment the site shell can load with a
plain ``<script>`` tag::

    NG_DOCS={
      "sections": {"api": "API Documentation"},
      "pages": [...],
      "apis": {"api": true},
      ...
    };

Reading it back never executes anything: the assignment is stripped and the
remaining JSON is decoded with msgspec.

Example
-------
>>> from pathlib import Path
>>> store = ManifestStore(Path("docs"))  # doctest: +SKIP
>>> manifest = store.load("guide")  # doctest: +SKIP
>>> manifest = ManifestStore.merge(manifest, pages, "guide")  # doctest: +SKIP
>>> store.write(manifest, options)  # doctest: +SKIP
[PosixPath('docs/js/docs-setup.js'), PosixPath('docs/index.html')]
"""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ
from pathlib import Path, PurePosixPath

import msgspec
import msgspec.json
from jinja2 import (
    Environment,
    FileSystemLoader,
    TemplateError,
    TemplateNotFound,
    select_autoescape,
)

from ._constants import (
    INDEX_FILENAME,
    MANIFEST_GLOBAL,
    MANIFEST_PATH,
    RESERVED_KEY_PREFIX,
)
from .assets import seed_site_shell
from .config import ConfigurationError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .config import SiteOptions

_ASSIGNMENT = re.compile(
    rf"^\s*(?:var\s+|window\.)?{MANIFEST_GLOBAL}\s*=\s*(?P<body>.*?)\s*;?\s*$",
    re.DOTALL,
)
_CORE_KEYS = ("sections", "pages", "apis")


class ManifestError(ConfigurationError):
    """Raised when an existing manifest cannot be read."""


@dc.dataclass(slots=True)
class Manifest:
    """In-memory site manifest.

    Attributes
    ----------
    sections : dict[str, str]
        Section key to display title.
    pages : list[dict[str, Any]]
        Page metadata mappings, unique by ``(section, id)``. Pages loaded from
        disk are kept verbatim, unknown keys included.
    apis : dict[str, bool]
        Section key to whether the section documents an API.
    extra : dict[str, Any]
        Any other top-level keys, in file order.
    """

    sections: dict[str, str] = dc.field(default_factory=dict)
    pages: list[dict[str, typ.Any]] = dc.field(default_factory=list)
    apis: dict[str, bool] = dc.field(default_factory=dict)
    extra: dict[str, typ.Any] = dc.field(default_factory=dict)

    def section_pages(self, section: str) -> list[dict[str, typ.Any]]:
        """Return the pages belonging to ``section`` in manifest order."""
        return [page for page in self.pages if page.get("section") == section]


def parse_manifest(text: str, *, source: str = MANIFEST_PATH) -> Manifest:
    """Decode manifest file contents into a :class:`Manifest`.

    Raises
    ------
    ManifestError
        If the text is not a ``NG_DOCS=<json object>;`` assignment with the
        expected core structure.
    """
    match = _ASSIGNMENT.match(text)
    if not match:
        msg = f"Manifest '{source}' is not a {MANIFEST_GLOBAL} assignment."
        raise ManifestError(msg)
    try:
        data = msgspec.json.decode(match.group("body"))
    except msgspec.DecodeError as exc:
        msg = f"Manifest '{source}' is not valid JSON: {exc}"
        raise ManifestError(msg) from exc
    if not isinstance(data, dict):
        msg = f"Manifest '{source}' must assign a JSON object."
        raise ManifestError(msg)

    sections = data.get("sections", {})
    pages = data.get("pages", [])
    apis = data.get("apis", {})
    if (
        not isinstance(sections, dict)
        or not isinstance(apis, dict)
        or not isinstance(pages, list)
        or not all(isinstance(page, dict) for page in pages)
    ):
        msg = f"Manifest '{source}' has malformed sections, pages or apis."
        raise ManifestError(msg)
    return Manifest(
        sections=sections,
        pages=pages,
        apis=apis,
        extra={key: value for key, value in data.items() if key not in _CORE_KEYS},
    )


def serialize_manifest(manifest: Manifest) -> str:
    """Return the manifest as a ``NG_DOCS=…;`` assignment.

    Keys starting with the reserved ``__`` prefix are dropped at any depth.
    """
    document: dict[str, typ.Any] = {
        "sections": manifest.sections,
        "pages": manifest.pages,
        "apis": manifest.apis,
    }
    document.update(manifest.extra)
    encoded = msgspec.json.format(
        msgspec.json.encode(_strip_reserved(document)), indent=2
    )
    return f"{MANIFEST_GLOBAL}={encoded.decode('utf-8')};"


def _strip_reserved(value: typ.Any) -> typ.Any:
    if isinstance(value, dict):
        return {
            key: _strip_reserved(item)
            for key, item in value.items()
            if not str(key).startswith(RESERVED_KEY_PREFIX)
        }
    if isinstance(value, list):
        return [_strip_reserved(item) for item in value]
    return value


class ManifestStore:
    """Load, merge and write the manifest of one destination directory."""

    def __init__(self, dest: Path, *, templates_dir: Path | None = None) -> None:
        """Initialize the store.

        Parameters
        ----------
        dest : Path
            Site destination directory.
        templates_dir : Path, optional
            Directory holding ``index.jinja`` and the static site shell;
            defaults to the packaged templates.
        """
        self.dest = dest
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"

    @property
    def path(self) -> Path:
        """Location of the manifest file."""
        return self.dest / MANIFEST_PATH

    def load(self, current_section: str) -> Manifest:
        """Read the existing manifest, or start a fresh site.

        Pages of ``current_section`` are dropped straight away since this run
        regenerates them. When no manifest exists yet the destination is
        seeded with the static site shell.

        Raises
        ------
        ManifestError
            If the existing manifest is malformed.
        """
        if not self.path.exists():
            seed_site_shell(self.dest, templates_dir=self.templates_dir)
            return Manifest()
        manifest = parse_manifest(
            self.path.read_text(encoding="utf-8"), source=str(self.path)
        )
        manifest.pages = [
            page for page in manifest.pages if page.get("section") != current_section
        ]
        return manifest

    @staticmethod
    def merge(
        manifest: Manifest,
        new_pages: cabc.Iterable[cabc.Mapping[str, typ.Any]],
        current_section: str,
    ) -> Manifest:
        """Return ``manifest`` with ``current_section`` pages replaced.

        Pages of other sections keep their content and order. New pages are
        appended; a repeated ``(section, id)`` overwrites the earlier entry in
        place. A new page without a section is assigned ``current_section``.

        Raises
        ------
        ConfigurationError
            If a new page belongs to another section.
        """
        merged: dict[tuple[typ.Any, typ.Any], dict[str, typ.Any]] = {}
        for page in manifest.pages:
            if page.get("section") == current_section:
                continue
            merged.setdefault((page.get("section"), page.get("id")), page)
        for page in new_pages:
            section = page.get("section", current_section)
            if section != current_section:
                msg = (
                    f"Page '{page.get('id')}' belongs to section '{section}' but "
                    f"this run only owns section '{current_section}'."
                )
                raise ConfigurationError(msg)
            merged[(current_section, page.get("id"))] = {
                **page,
                "section": current_section,
            }
        return dc.replace(manifest, pages=list(merged.values()))

    def write(
        self, manifest: Manifest, options: SiteOptions, *, nav_content: str = ""
    ) -> list[Path]:
        """Persist the manifest and regenerate ``index.html``.

        Returns
        -------
        list[Path]
            The manifest path, followed by the index path when it was written.

        Raises
        ------
        ConfigurationError
            If the index template is missing or fails to render.
        """
        written: list[Path] = []
        if not options.do_not_generate_standard_index_html:
            index_html = self.render_index(manifest, options, nav_content=nav_content)
        else:
            index_html = None

        extra = dict(manifest.extra)
        extra.update(
            {
                "html5Mode": options.html5_mode,
                "editExample": options.edit_example,
                "startPage": options.start_page,
                "discussions": options.discussions,
                "scripts": [PurePosixPath(str(url)).name for url in options.scripts],
            }
        )
        if options.discussions is None:
            del extra["discussions"]
        manifest.extra = extra

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(serialize_manifest(manifest), encoding="utf-8")
        written.append(self.path)

        if index_html is not None:
            index_path = self.dest / INDEX_FILENAME
            index_path.write_text(index_html, encoding="utf-8")
            written.append(index_path)
        return written

    def render_index(
        self, manifest: Manifest, options: SiteOptions, *, nav_content: str = ""
    ) -> str:
        """Render the site index page with the fixed substitution set."""
        if options.template is not None:
            loader_dir, template_name = options.template.parent, options.template.name
        else:
            loader_dir, template_name = self.templates_dir, "index.jinja"
        env = Environment(
            loader=FileSystemLoader(str(loader_dir)),
            autoescape=select_autoescape(["html", "xml", "jinja", "tmpl"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        context = {
            "scripts": [str(script) for script in options.scripts],
            "styles": list(options.styles),
            "sections": "|".join(manifest.sections),
            "title": options.title or "",
            "image": options.image,
            "title_link": options.title_link,
            "image_link": options.image_link,
            "best_match": options.best_match,
            "analytics": options.analytics,
            "discussions": options.discussions,
            "nav_content": nav_content,
            "defer_load": bool(options.defer_load),
        }
        try:
            html = env.get_template(template_name).render(**context)
        except TemplateNotFound as exc:
            msg = f"Index template '{loader_dir / template_name}' not found."
            raise ConfigurationError(msg) from exc
        except TemplateError as exc:
            msg = f"Index template '{loader_dir / template_name}' failed: {exc}"
            raise ConfigurationError(msg) from exc
        if not html.endswith("\n"):
            html += "\n"
        return html


__all__ = [
    "Manifest",
    "ManifestError",
    "ManifestStore",
    "parse_manifest",
    "serialize_manifest",
]
