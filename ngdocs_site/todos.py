"""Aggregate ``@todo`` markers into a per-file index and render the TODO page.

Records carry their own TODO markers and so do their methods. The index
groups them by source file and then by *section*: markers attached to the
record itself land in the ``"file"`` section, method markers in a section
named after the method. Within a file ``"file"`` always comes first and the
remaining sections sort lexicographically.

Examples
--------
>>> from ngdocs_site.records import DocRecord, MethodRecord, TodoMarker
>>> record = DocRecord(
...     id="a",
...     section="api",
...     file="src/a.js",
...     todos=(TodoMarker("tidy"),),
...     methods=(MethodRecord("zeta", (TodoMarker("z"),)),),
... )
>>> index = build_todo_index([record])
>>> index.todo_count, index.file_count
(2, 1)
>>> [name for name, _ in index.files["src/a.js"].ordered_sections()]
['file', 'zeta']
>>> build_todo_index([]) is None
True
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ._constants import TODO_FILE_SECTION, TODO_PAGE_PATH

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .records import DocRecord, TodoMarker


def section_sort_key(name: str) -> tuple[bool, str]:
    """Order the ``"file"`` section first, then everything else by name."""
    return (name != TODO_FILE_SECTION, name)


@dc.dataclass(slots=True)
class TodoFile:
    """TODO markers collected for one source file, grouped by section."""

    file_name: str
    sections: dict[str, list[TodoMarker]] = dc.field(default_factory=dict)

    def add(self, section: str, todo: TodoMarker) -> None:
        """Append ``todo`` to ``section``, creating the section on first use."""
        self.sections.setdefault(section, []).append(todo)

    def ordered_sections(self) -> list[tuple[str, list[TodoMarker]]]:
        """Return the sections in display order."""
        return [
            (name, self.sections[name])
            for name in sorted(self.sections, key=section_sort_key)
        ]


@dc.dataclass(slots=True)
class TodoIndex:
    """Nested file → section → markers index with running totals."""

    files: dict[str, TodoFile] = dc.field(default_factory=dict)
    todo_count: int = 0

    @property
    def file_count(self) -> int:
        """Number of files carrying at least one marker."""
        return len(self.files)

    def add(self, file_name: str, section: str, todo: TodoMarker) -> None:
        """Record one marker, creating the file entry if needed."""
        todo_file = self.files.get(file_name)
        if todo_file is None:
            todo_file = self.files[file_name] = TodoFile(file_name)
        todo_file.add(section, todo)
        self.todo_count += 1

    def ordered_files(self) -> list[TodoFile]:
        """Return the file entries sorted by file name."""
        return [self.files[name] for name in sorted(self.files)]


def build_todo_index(records: cabc.Iterable[DocRecord]) -> TodoIndex | None:
    """Collect the TODO markers of ``records``.

    Returns
    -------
    TodoIndex | None
        The populated index, or ``None`` when no record or method carries a
        marker, so callers render the empty state instead of a zero count.
    """
    index = TodoIndex()
    for record in records:
        for todo in record.todos:
            index.add(record.file, TODO_FILE_SECTION, todo)
        for method in record.methods:
            for todo in method.todos:
                index.add(record.file, method.name, todo)
    if not index.files:
        return None
    return index


class TodoPageBuilder:
    """Render ``partials/todo/index.html`` from a :class:`TodoIndex`."""

    def __init__(self, *, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.template = self.env.get_template("todo_index.jinja")

    def render(self, index: TodoIndex | None) -> str:
        """Return the page HTML; ``None`` renders the empty state."""
        html = self.template.render(
            index=index,
            file_section=TODO_FILE_SECTION,
        )
        if not html.endswith("\n"):
            html += "\n"
        return html

    def write(self, index: TodoIndex | None, dest: Path) -> Path:
        """Render the page into ``dest`` and return the written path."""
        output_path = dest / TODO_PAGE_PATH
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.render(index), encoding="utf-8")
        return output_path


__all__ = [
    "TodoFile",
    "TodoIndex",
    "TodoPageBuilder",
    "build_todo_index",
    "section_sort_key",
]
