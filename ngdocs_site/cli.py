"""Cyclopts CLI entrypoint for assembling ngdocs documentation sites.

The ``ngdocs`` console script defined here runs the site-assembly pipeline
for every target in ``ngdocs.yaml`` (or a single one), and can collapse an
already generated site into one self-contained ``index.html``. Typical usage
runs ``ngdocs build`` locally or in CI after the records were extracted, once
per documentation section.

Examples
--------
Build every configured target:

>>> from ngdocs_site.cli import main
>>> main()  # doctest: +SKIP

Rebuild only the guide section into a scratch directory:

>>> from ngdocs_site.cli import app
>>> app(["build", "--target", "guide", "--dest", "dist"])  # doctest: +SKIP
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .builder import BuildResult, SiteBuilder
from .config import load_site_config
from .inliner import inline_site
from .project import load_project_descriptor
from .records import load_reader

DEFAULT_CONFIG = Path("config/ngdocs.yaml")

app = App(name="ngdocs", config=cyclopts.config.Env("INPUT_", command=False))  # type: ignore[unknown-argument]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _report(result: BuildResult) -> None:
    for path in result.written:
        print(f"wrote {_format_path(path)}")
    if result.todo_page is not None:
        index = result.todo_index
        if index is None:
            print(
                f"Generated empty \"{_format_path(result.todo_page)}\" "
                "(no \"@todo\" items found!)"
            )
        else:
            print(
                f'Generated "{_format_path(result.todo_page)}" '
                f"({index.todo_count} items in {index.file_count} files)"
            )
    if result.inlined is not None:
        print(
            f"inlined {len(result.inlined.partials)} partials into "
            f"{_format_path(result.inlined.index_path)}"
        )
    print(
        f"DONE. Generated {len(result.records)} pages in {result.elapsed_ms}ms "
        f"[{result.section}]."
    )


@app.command(help="Build or update the documentation site, one section per target.")
def build(
    *,
    target: typ.Annotated[
        str | None, Parameter(help="Target name", env_var="INPUT_TARGET")
    ] = None,
    config: typ.Annotated[
        Path, Parameter(help="Path to site config", env_var="INPUT_CONFIG")
    ] = DEFAULT_CONFIG,
    dest: typ.Annotated[
        Path | None,
        Parameter(help="Override the destination folder", env_var="INPUT_DEST"),
    ] = None,
) -> None:
    """Run the site-assembly pipeline for the configured targets.

    Parameters
    ----------
    target : str or None, optional
        Specific target to build; when ``None`` (default) every target is
        built in configuration order.
    config : Path, optional
        Path to the ``ngdocs.yaml`` configuration file (overridable via
        ``INPUT_CONFIG``).
    dest : Path or None, optional
        Override the destination directory of every selected target.

    Returns
    -------
    None
        Writes the site into each target's destination and prints the paths.

    Raises
    ------
    ConfigurationError
        If the configuration, a link template, a template or an existing
        manifest is invalid.
    """
    site_config = load_site_config(config)
    base_dir = config.parent
    reader = load_reader(site_config.reader)
    project = load_project_descriptor(site_config.project_path, search_dir=base_dir)

    if target:
        targets = [site_config.get_target(target)]
    else:
        targets = list(site_config.targets.values())

    for section_target in targets:
        if dest is not None:
            section_target = dc.replace(
                section_target, options=dc.replace(section_target.options, dest=dest)
            )
        print("Generating Documentation...")
        builder = SiteBuilder(
            section_target, reader=reader, project=project, base_dir=base_dir
        )
        _report(builder.run())


@app.command(help="Inline all partials of a generated site into its index.html.")
def inline(
    *,
    dest: typ.Annotated[
        Path, Parameter(help="Generated site folder", env_var="INPUT_DEST")
    ] = Path("docs"),
) -> None:
    """Embed the partials of ``dest`` into ``dest/index.html`` and delete them.

    Raises
    ------
    InlineError
        If the site has no index page or was already inlined.
    """
    result = inline_site(dest)
    print(
        f"inlined {len(result.partials)} partials into {_format_path(result.index_path)}"
    )


def main() -> None:
    """Invoke the Cyclopts application that powers the ``ngdocs`` command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
