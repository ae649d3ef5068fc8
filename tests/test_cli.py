"""Tests for the ``ngdocs`` command line entry points.

The command functions are called directly; their output is captured with
``capsys`` and paths are reported relative to the working directory, which
each test moves into ``tmp_path``.
"""

from __future__ import annotations

import typing as typ

import pytest

from ngdocs_site import cli
from ngdocs_site.inliner import InlineError

if typ.TYPE_CHECKING:
    from pathlib import Path

CONFIG = """
defaults:
  dest: docs
  title: CLI Docs
  source_link: false
  edit_link: false
targets:
  api:
    files:
      - src: records/api.json
  guide:
    options:
      generate_partials_todo_index: true
    files:
      - src: records/guide.json
        title: Guide
"""


@pytest.fixture
def site_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Write a two-target configuration with JSON records and enter ``tmp_path``."""
    records = tmp_path / "records"
    records.mkdir()
    (records / "api.json").write_text(
        '[{"id": "ng:a", "html": "<p>a</p>"}]', encoding="utf-8"
    )
    (records / "guide.json").write_text(
        '{"id": "intro", "html": "<p>intro</p>", "todos": [{"text": "write"}]}',
        encoding="utf-8",
    )
    path = tmp_path / "ngdocs.yaml"
    path.write_text(CONFIG.strip() + "\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    return path


def test_build_single_target(site_config: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cli.build(target="api", config=site_config)

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "Generating Documentation..."
    assert "wrote docs/partials/api/ng.a.html" in lines
    assert "wrote docs/js/docs-setup.js" in lines
    assert "wrote docs/index.html" in lines
    assert lines[-1].startswith("DONE. Generated 1 pages in ")
    assert lines[-1].endswith("ms [api].")
    assert not (site_config.parent / "docs/partials/guide").exists()


def test_build_all_targets(site_config: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cli.build(config=site_config)

    out = capsys.readouterr().out
    assert out.count("Generating Documentation...") == 2
    assert 'Generated "docs/partials/todo/index.html" (1 items in 1 files)' in out
    assert out.rstrip().endswith("[guide].")
    assert (site_config.parent / "docs/partials/guide/intro.html").is_file()


def test_build_dest_override(
    site_config: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.build(target="api", config=site_config, dest=tmp_path / "dist")
    assert (tmp_path / "dist" / "index.html").is_file()
    assert "wrote dist/index.html" in capsys.readouterr().out


def test_build_unknown_target(site_config: Path) -> None:
    with pytest.raises(KeyError, match="Known targets: api, guide"):
        cli.build(target="nope", config=site_config)


def test_inline_command(site_config: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cli.build(target="api", config=site_config)
    capsys.readouterr()

    cli.inline(dest=site_config.parent / "docs")
    assert capsys.readouterr().out.strip() == (
        "inlined 1 partials into docs/index.html"
    )
    with pytest.raises(InlineError):
        cli.inline(dest=site_config.parent / "docs")
