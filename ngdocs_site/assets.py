"""Copy static assets into the site destination.

Two kinds of files end up next to the generated pages: the static site shell
shipped with the package (stylesheet and loader script), and the scripts,
styles and logo image named in the build options. Linked assets (remote URLs
and ``../`` paths) are referenced as-is; local ones are copied into the
destination and their option values rewritten to the copied location.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import re
import shutil
import typing as typ
from pathlib import Path

from ._constants import CSS_FOLDER, SCRIPTS_FOLDER, STYLES_FOLDER

if typ.TYPE_CHECKING:
    from .config import SiteOptions

LINKED_ASSET = re.compile(r"^((https?:)?//|\.\./)")


def is_linked(asset: str) -> bool:
    """Return whether ``asset`` is referenced rather than copied."""
    return bool(LINKED_ASSET.match(asset))


def flatten(items: cabc.Iterable[object]) -> list[str]:
    """Flatten arbitrarily nested lists of asset paths."""
    flat: list[str] = []
    for item in items:
        if isinstance(item, list | tuple):
            flat.extend(flatten(item))
        elif item is not None:
            flat.append(str(item))
    return flat


def seed_site_shell(dest: Path, *, templates_dir: Path) -> None:
    """Copy the static site shell (everything but ``*.jinja``) into ``dest``."""
    shutil.copytree(
        templates_dir,
        dest,
        ignore=shutil.ignore_patterns("*.jinja"),
        dirs_exist_ok=True,
    )


def _copy_into(source: str, folder: Path, base_dir: Path) -> str:
    src = Path(source)
    if not src.is_absolute():
        src = base_dir / src
    folder.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(src, folder / src.name)
    return src.name


def stage_assets(options: SiteOptions, *, base_dir: Path | None = None) -> SiteOptions:
    """Copy local scripts, styles and image; return options pointing at them.

    Parameters
    ----------
    options : SiteOptions
        Options as configured. ``scripts`` may contain nested lists.
    base_dir : Path, optional
        Directory relative asset paths resolve against; defaults to the
        current working directory.

    Raises
    ------
    FileNotFoundError
        If a local asset does not exist.
    """
    base = base_dir or Path.cwd()
    dest = options.dest

    scripts = [
        script
        if is_linked(script)
        else f"{SCRIPTS_FOLDER}/{_copy_into(script, dest / SCRIPTS_FOLDER, base)}"
        for script in flatten(options.scripts)
    ]
    styles = [
        style
        if is_linked(style)
        else f"{CSS_FOLDER}/{_copy_into(style, dest / CSS_FOLDER, base)}"
        for style in flatten(options.styles)
    ]
    image = options.image
    if image and not is_linked(image):
        image = f"{STYLES_FOLDER}/{_copy_into(image, dest / STYLES_FOLDER, base)}"
    return dc.replace(options, scripts=scripts, styles=styles, image=image)


__all__ = ["LINKED_ASSET", "flatten", "is_linked", "seed_site_shell", "stage_assets"]
