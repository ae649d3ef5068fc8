"""Collapse a generated site into a single self-contained ``index.html``.

Each partial under ``partials/`` is embedded into the index page as an inert
``<script type="text/ng-template">`` block whose ``id`` is the partial's path
relative to the page, and the partial files are then deleted.

A partial may itself contain ``</script>``, which would end the inert block
early. :class:`FragmentCodec` owns the escaping: it rewrites every
``</script`` to a placeholder before embedding, and the bootstrap script it
emits restores the original text inside inert blocks when the page loads.
Ordinary executable scripts are never touched.

Example
-------
>>> codec = FragmentCodec()
>>> encoded = codec.encode("<script>x()</script>")
>>> encoded
'<script>x()<___/script>'
>>> codec.decode(encoded)
'<script>x()</script>'
"""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ
from html import escape
from pathlib import Path

from ._constants import INDEX_FILENAME, PARTIALS_DIR

if typ.TYPE_CHECKING:
    import collections.abc as cabc

TEMPLATE_SCRIPT_TYPE = "text/ng-template"
_BODY_OPEN_TAG = re.compile(r"<body(?:\s[^>]*)?>", re.IGNORECASE)


class InlineError(RuntimeError):
    """Raised when a site cannot be inlined (for example, already inlined)."""


class FragmentCodec:
    """Reversible escaping of ``</script`` inside embedded fragments.

    ``</script`` (any letter case) becomes ``<___/script``. Text that already
    looks like a placeholder (``<`` followed by three or more underscores and
    ``/script``) gains one more underscore, so decoding is an exact inverse.
    """

    _ENCODE = re.compile(r"<(_{3,})?/(script)", re.IGNORECASE)
    _DECODE = re.compile(r"<(_{3,})/(script)", re.IGNORECASE)

    def encode(self, fragment: str) -> str:
        """Escape ``fragment`` for embedding inside a ``<script>`` block."""

        def _repl(match: re.Match[str]) -> str:
            underscores = match.group(1) or "__"
            return f"<{underscores}_/{match.group(2)}"

        return self._ENCODE.sub(_repl, fragment)

    def decode(self, fragment: str) -> str:
        """Restore a fragment produced by :meth:`encode`."""

        def _repl(match: re.Match[str]) -> str:
            underscores = match.group(1)[1:]
            if underscores == "__":
                underscores = ""
            return f"<{underscores}/{match.group(2)}"

        return self._DECODE.sub(_repl, fragment)

    def bootstrap_script(self) -> str:
        """Return the ``<script>`` that runs :meth:`decode` in the browser."""
        return (
            "<script>(function(){"
            "var s=document.getElementsByTagName('script');"
            "for(var i=0;i<s.length;i++){"
            f"if(s[i].type==='{TEMPLATE_SCRIPT_TYPE}'){{"
            "s[i].textContent=s[i].textContent.replace(/<(_{3,})\\/(script)/gi,"
            "function(m,u,t){return '<'+(u.length===3?'':u.slice(1))+'/'+t;});"
            "}}})()</script>"
        )


@dc.dataclass(frozen=True, slots=True)
class InlineResult:
    """Outcome of inlining: the rewritten page and the embedded partials."""

    index_path: Path
    partials: tuple[str, ...]


class PartialInliner:
    """Embed ``partials/**/*.html`` into ``index.html`` and remove them."""

    def __init__(self, codec: FragmentCodec | None = None) -> None:
        self.codec = codec or FragmentCodec()

    def run(self, index_file: Path, partials_dir: Path | None = None) -> InlineResult:
        """Inline every partial into ``index_file``.

        Parameters
        ----------
        index_file : Path
            The generated site shell page.
        partials_dir : Path, optional
            Directory holding the partials; defaults to ``partials`` next to
            ``index_file``.

        Raises
        ------
        InlineError
            If the page is missing, has no ``<body>`` tag, or there are no
            partials left to inline. Nothing is deleted in these cases.
        """
        index_dir = index_file.parent
        partials_dir = partials_dir or index_dir / PARTIALS_DIR
        if not index_file.is_file():
            msg = f"Cannot inline partials: '{index_file}' does not exist."
            raise InlineError(msg)
        partials = sorted(partials_dir.glob("**/*.html"))
        if not partials:
            msg = (
                f"Cannot inline partials: no partials found under '{partials_dir}'. "
                "Was the site already inlined?"
            )
            raise InlineError(msg)

        page = index_file.read_text(encoding="utf-8")
        match = _BODY_OPEN_TAG.search(page)
        if not match:
            msg = f"Cannot inline partials: '{index_file}' has no <body> tag."
            raise InlineError(msg)

        names = [path.relative_to(index_dir).as_posix() for path in partials]
        blocks = self._render_blocks(
            (name, path.read_text(encoding="utf-8"))
            for name, path in zip(names, partials, strict=True)
        )
        patched = page[: match.end()] + blocks + page[match.end() :]
        index_file.write_text(patched, encoding="utf-8")
        for path in partials:
            path.unlink()
        return InlineResult(index_path=index_file, partials=tuple(names))

    def _render_blocks(self, fragments: cabc.Iterable[tuple[str, str]]) -> str:
        blocks = [
            f'<script type="{TEMPLATE_SCRIPT_TYPE}" id="{escape(name, quote=True)}">'
            f"{self.codec.encode(content)}</script>"
            for name, content in fragments
        ]
        return "".join(blocks) + self.codec.bootstrap_script()


def inline_site(dest: Path) -> InlineResult:
    """Inline the partials of the site generated into ``dest``."""
    return PartialInliner().run(dest / INDEX_FILENAME)


__all__ = [
    "TEMPLATE_SCRIPT_TYPE",
    "FragmentCodec",
    "InlineError",
    "InlineResult",
    "PartialInliner",
    "inline_site",
]
