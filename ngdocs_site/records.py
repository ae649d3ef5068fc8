"""Documentation record types consumed by the site-assembly pipeline.

Records are produced by a *reader*: any callable that turns the contents of
one source file into :class:`DocRecord` instances. The package ships
:func:`read_json_records`, which accepts records that were extracted ahead of
time and stored as JSON, and :func:`load_reader` for plugging in a custom
extractor through a ``"module:callable"`` path.

Examples
--------
>>> record = DocRecord(id="ng.directive:ngClick", section="api", file="src/a.js")
>>> record.metadata().short_name
'ngClick'
>>> sanitize_id(record.id)
'ng.directive.ngClick'
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import importlib
import re
import typing as typ

import msgspec
import msgspec.json

from .config import ConfigurationError

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .config import SiteOptions
    from .links import LinkFunction

_NAME_SEPARATORS = re.compile(r"[.:#]")


@dc.dataclass(frozen=True, slots=True)
class TodoMarker:
    """An outstanding work note attached to a record or method.

    Attributes
    ----------
    text : str
        Plain text of the note.
    full : str
        Preformatted HTML rendition, inserted into the TODO page unescaped.
    """

    text: str
    full: str = ""


@dc.dataclass(frozen=True, slots=True)
class MethodRecord:
    """A documented member of a record with its own TODO markers."""

    name: str
    todos: tuple[TodoMarker, ...] = ()


@dc.dataclass(frozen=True, slots=True)
class DocRecord:
    """One parsed documentation unit from a source comment block.

    ``content`` is either the rendered page body or a zero-argument callable
    producing it, so readers can defer rendering until the page is written.
    """

    id: str
    section: str
    file: str
    todos: tuple[TodoMarker, ...] = ()
    methods: tuple[MethodRecord, ...] = ()
    content: str | cabc.Callable[[], str] = ""
    short_name: str | None = None
    type: str = "overview"
    module_name: str | None = None
    short_description: str = ""
    keywords: str = ""

    def html(self) -> str:
        """Return the rendered HTML body for this record."""
        if callable(self.content):
            return self.content()
        return self.content

    def metadata(self) -> PageMetadata:
        """Project the record onto its manifest entry."""
        short_name = self.short_name or _NAME_SEPARATORS.split(self.id)[-1]
        return PageMetadata(
            section=self.section,
            id=self.id,
            short_name=short_name,
            type=self.type,
            module_name=self.module_name or "",
            source_file=self.file,
            short_description=self.short_description,
            keywords=self.keywords,
        )


class PageMetadata(msgspec.Struct, frozen=True, rename="camel"):
    """Serializable projection of a record stored in the site manifest."""

    section: str
    id: str
    short_name: str
    type: str
    module_name: str
    source_file: str
    short_description: str = ""
    keywords: str = ""

    def to_dict(self) -> dict[str, typ.Any]:
        """Return the manifest mapping with camelCase keys in field order."""
        return msgspec.to_builtins(self)


@dc.dataclass(frozen=True, slots=True)
class ReaderContext:
    """Per-run values handed to a reader alongside each source file."""

    section: str
    is_api: bool
    source_link: LinkFunction | None
    edit_link: LinkFunction | None
    options: SiteOptions


class DocReader(typ.Protocol):
    """Callable that extracts documentation records from one source file."""

    def __call__(
        self, content: str, path: Path, context: ReaderContext
    ) -> cabc.Iterable[DocRecord]: ...


def sanitize_id(doc_id: str) -> str:
    """Return the filename-safe form of a record id.

    ``angular.Module`` and ``angular.module`` collide on case-insensitive
    filesystems, so the former is renamed; colons become dots.
    """
    return doc_id.replace("angular.Module", "angular.IModule").replace(":", ".")


class _TodoPayload(msgspec.Struct):
    text: str
    full: str = ""


class _MethodPayload(msgspec.Struct):
    name: str
    todos: list[_TodoPayload] = []


class _RecordPayload(msgspec.Struct, rename="camel"):
    id: str
    file: str | None = None
    todos: list[_TodoPayload] = []
    methods: list[_MethodPayload] = []
    html: str = ""
    short_name: str | None = None
    type: str = "overview"
    module_name: str | None = None
    short_description: str = ""
    keywords: str = ""


_RECORDS_DECODER = msgspec.json.Decoder(list[_RecordPayload] | _RecordPayload)


def read_json_records(
    content: str, path: Path, context: ReaderContext
) -> list[DocRecord]:
    """Decode pre-extracted records stored as JSON.

    The document is either a single record object or a list of them. Records
    always belong to the run's section; a ``section`` key in the document is
    ignored. A record's ``file`` defaults to the path it was read from.

    Raises
    ------
    ConfigurationError
        If the document does not match the record schema.
    """
    try:
        decoded = _RECORDS_DECODER.decode(content)
    except msgspec.DecodeError as exc:
        msg = f"Invalid record file '{path}': {exc}"
        raise ConfigurationError(msg) from exc
    payloads = decoded if isinstance(decoded, list) else [decoded]
    return [_build_record(payload, path, context) for payload in payloads]


def _build_record(
    payload: _RecordPayload, path: Path, context: ReaderContext
) -> DocRecord:
    return DocRecord(
        id=payload.id,
        section=context.section,
        file=payload.file or path.as_posix(),
        todos=tuple(TodoMarker(todo.text, todo.full) for todo in payload.todos),
        methods=tuple(
            MethodRecord(
                method.name,
                tuple(TodoMarker(todo.text, todo.full) for todo in method.todos),
            )
            for method in payload.methods
        ),
        content=payload.html,
        short_name=payload.short_name,
        type=payload.type,
        module_name=payload.module_name,
        short_description=payload.short_description,
        keywords=payload.keywords,
    )


def load_reader(spec: str | None) -> DocReader:
    """Resolve a ``"module:callable"`` path into a reader.

    ``None`` selects :func:`read_json_records`.
    """
    if not spec:
        return read_json_records
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        msg = f"Reader '{spec}' must look like 'package.module:callable'."
        raise ConfigurationError(msg)
    try:
        module = importlib.import_module(module_name)
        reader = getattr(module, attr)
    except (ImportError, AttributeError) as exc:
        msg = f"Unable to import reader '{spec}': {exc}"
        raise ConfigurationError(msg) from exc
    if not callable(reader):
        msg = f"Reader '{spec}' is not callable."
        raise ConfigurationError(msg)
    return typ.cast("DocReader", reader)


__all__ = [
    "DocReader",
    "DocRecord",
    "MethodRecord",
    "PageMetadata",
    "ReaderContext",
    "TodoMarker",
    "load_reader",
    "read_json_records",
    "sanitize_id",
]
