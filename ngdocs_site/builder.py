"""High-level orchestration for one documentation build run.

A run regenerates one *section* of the site. It stages assets, loads the
existing manifest, resolves source/edit links, reads the section's source
files through a reader, writes one partial per record, merges the records'
metadata into the manifest, optionally renders the TODO page, writes the
manifest and index page, and finally (optionally) inlines all partials.

The records read during a run live in the run's own :class:`BuildResult`;
nothing is kept at module level, so builders for different destinations are
independent.

Example
-------
>>> from pathlib import Path
>>> from ngdocs_site.config import load_site_config
>>> from ngdocs_site.builder import SiteBuilder
>>> config = load_site_config(Path("config/ngdocs.yaml"))  # doctest: +SKIP
>>> result = SiteBuilder(config.get_target("api")).run()  # doctest: +SKIP
>>> [path.name for path in result.written]  # doctest: +SKIP
['ngdoc.html', 'docs-setup.js', 'index.html']
"""

from __future__ import annotations

import dataclasses as dc
import time
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, TemplateError, TemplateNotFound

from ._constants import (
    DEFAULT_SECTION,
    DEFAULT_SECTION_TITLE,
    INDEX_FILENAME,
    PARTIAL_PATH_TEMPLATE,
    PARTIALS_DIR,
    TODO_PAGE_METADATA,
    TODO_SECTION,
)
from .assets import stage_assets
from .config import ConfigurationError
from .inliner import InlineResult, PartialInliner
from .links import CommitShaResolver, LinkTemplateResolver, ResolvedLinks
from .manifest import Manifest, ManifestStore
from .project import ProjectDescriptor, load_project_descriptor
from .records import DocReader, DocRecord, ReaderContext, read_json_records, sanitize_id
from .todos import TodoIndex, TodoPageBuilder, build_todo_index

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .config import SectionTarget, SiteOptions, SourceGroup


@dc.dataclass(slots=True)
class BuildResult:
    """Summary of a completed run.

    Attributes
    ----------
    section : str
        Section the run regenerated.
    records : list[DocRecord]
        Records read from the section's sources, in read order.
    written : list[Path]
        Every file written, in write order.
    todo_index : TodoIndex | None
        The aggregated TODO index when the TODO page was generated.
    todo_page : Path | None
        Path of the TODO page when it was generated.
    inlined : InlineResult | None
        Inlining outcome when ``inline_partials`` was set.
    elapsed_ms : int
        Wall-clock duration of the run.
    """

    section: str
    records: list[DocRecord] = dc.field(default_factory=list)
    written: list[Path] = dc.field(default_factory=list)
    todo_index: TodoIndex | None = None
    todo_page: Path | None = None
    inlined: InlineResult | None = None
    elapsed_ms: int = 0


class SiteBuilder:
    """Assemble or update the site for one configured section target."""

    def __init__(
        self,
        target: SectionTarget,
        *,
        reader: DocReader | None = None,
        project: ProjectDescriptor | None = None,
        base_dir: Path | None = None,
        templates_dir: Path | None = None,
        sha_resolver: cabc.Callable[[], str] | None = None,
    ) -> None:
        """Initialize the builder.

        Parameters
        ----------
        target : SectionTarget
            Section, source groups and options of this run.
        reader : DocReader, optional
            Record extractor; defaults to :func:`read_json_records`.
        project : ProjectDescriptor, optional
            Repository metadata for link templates and the default title;
            discovered in ``base_dir`` when omitted.
        base_dir : Path, optional
            Directory relative asset paths and record file names are resolved
            against; defaults to the current working directory.
        templates_dir : Path, optional
            Directory holding the Jinja templates and the static site shell.
        sha_resolver : Callable[[], str], optional
            Override for commit sha resolution; defaults to ``git`` run in
            ``base_dir``.
        """
        self.target = target
        self.section = target.section
        self.reader = reader or read_json_records
        self.base_dir = base_dir or Path.cwd()
        self.project = project or load_project_descriptor(search_dir=self.base_dir)
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"
        self.sha_resolver = sha_resolver or CommitShaResolver(self.base_dir)

    def run(self) -> BuildResult:
        """Run the build and return its summary.

        Raises
        ------
        ConfigurationError
            For invalid link templates, a malformed manifest, or missing
            templates. The run stops at the first error.
        InlineError
            If ``inline_partials`` is set and there is nothing to inline.
        """
        start = time.perf_counter()
        result = BuildResult(section=self.section)

        options = self._resolve_options()
        store = ManifestStore(options.dest, templates_dir=self.templates_dir)
        manifest = store.load(self.section)
        links = LinkTemplateResolver(
            self.project, sha_resolver=self.sha_resolver
        ).resolve(options.source_link, options.edit_link)

        for group in self.target.groups:
            context = self._register_group(manifest, group, options, links)
            result.records.extend(self._read_group(group, context))

        for record in result.records:
            result.written.append(self._write_partial(options.dest, record))

        manifest = ManifestStore.merge(
            manifest,
            (record.metadata().to_dict() for record in result.records),
            self.section,
        )
        if (
            options.generate_partials_todo_index
            or options.do_not_generate_standard_index_html
        ):
            _ensure_todo_page(manifest)

        if options.generate_partials_todo_index:
            result.todo_index = build_todo_index(result.records)
            result.todo_page = TodoPageBuilder(templates_dir=self.templates_dir).write(
                result.todo_index, options.dest
            )
            result.written.append(result.todo_page)

        nav_content = self._render_nav(options, manifest)
        result.written.extend(store.write(manifest, options, nav_content=nav_content))

        if options.inline_partials:
            result.inlined = PartialInliner().run(
                options.dest / INDEX_FILENAME, options.dest / PARTIALS_DIR
            )

        result.elapsed_ms = round((time.perf_counter() - start) * 1000)
        return result

    def _resolve_options(self) -> SiteOptions:
        options = self.target.options
        if options.title is None:
            options = dc.replace(options, title=self.project.display_title)
        return stage_assets(options, base_dir=self.base_dir)

    def _register_group(
        self,
        manifest: Manifest,
        group: SourceGroup,
        options: SiteOptions,
        links: ResolvedLinks,
    ) -> ReaderContext:
        """Record the group's title and API flag; return its reader context."""
        is_api = bool(group.api) or self.section == DEFAULT_SECTION
        manifest.sections[self.section] = group.title or DEFAULT_SECTION_TITLE
        manifest.apis[self.section] = is_api
        return ReaderContext(
            section=self.section,
            is_api=is_api,
            source_link=links.source,
            edit_link=links.edit,
            options=options,
        )

    def _read_group(
        self, group: SourceGroup, context: ReaderContext
    ) -> list[DocRecord]:
        """Read every existing source file of ``group``; absent files are skipped.

        Records always belong to the run's section, whatever the reader set.
        """
        records: list[DocRecord] = []
        for path in group.src:
            if not path.is_file():
                continue
            content = path.read_text(encoding="utf-8")
            records.extend(
                record
                if record.section == self.section
                else dc.replace(record, section=self.section)
                for record in self.reader(content, self._display_path(path), context)
            )
        return records

    def _display_path(self, path: Path) -> Path:
        """Return ``path`` relative to the base directory when possible."""
        try:
            return path.relative_to(self.base_dir)
        except ValueError:
            return path

    @staticmethod
    def _write_partial(dest: Path, record: DocRecord) -> Path:
        relative = PARTIAL_PATH_TEMPLATE.format(
            section=record.section, id=sanitize_id(record.id)
        )
        output_path = dest / relative
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(record.html(), encoding="utf-8")
        return output_path

    def _render_nav(self, options: SiteOptions, manifest: Manifest) -> str:
        """Render the optional navigation template into HTML."""
        if options.nav_template is None:
            return ""
        template_path = options.nav_template
        env = Environment(
            loader=FileSystemLoader(str(template_path.parent)),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        try:
            template = env.get_template(template_path.name)
            return template.render(
                options=options, sections=manifest.sections, section=self.section
            )
        except TemplateNotFound as exc:
            msg = f"Navigation template '{template_path}' not found."
            raise ConfigurationError(msg) from exc
        except TemplateError as exc:
            msg = f"Navigation template '{template_path}' failed: {exc}"
            raise ConfigurationError(msg) from exc


def _ensure_todo_page(manifest: Manifest) -> None:
    """Append the synthesized TODO page unless a ``todo`` page already exists."""
    if any(page.get("section") == TODO_SECTION for page in manifest.pages):
        return
    manifest.pages.append(dict(TODO_PAGE_METADATA))


__all__ = ["BuildResult", "SiteBuilder"]
