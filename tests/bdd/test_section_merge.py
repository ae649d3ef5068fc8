"""Behaviour tests for section-by-section site assembly.

These scenarios build a site twice into one destination, once per section,
and check that the persisted manifest only ever replaces the pages of the
section being built. They are backed by ``features/section_merge.feature``
and drive the real CLI command against a temporary ``ngdocs.yaml`` with
pre-extracted JSON records.

Usage:
    Run these behaviour tests with pytest, for example:

        pytest tests/bdd/test_section_merge.py -v

Prerequisites:
    - The test dependencies (including pytest-bdd and BeautifulSoup)
      installed via ``uv sync --extra test``.
"""

from __future__ import annotations

from pathlib import Path

import msgspec.json
import pytest
from bs4 import BeautifulSoup
from pytest_bdd import given, parsers, scenarios, then, when

from ngdocs_site import cli
from ngdocs_site.manifest import Manifest, parse_manifest

FEATURE_FILE = (
    Path(__file__).resolve().parents[2] / "features" / "section_merge.feature"
)
scenarios(FEATURE_FILE)

API_RECORDS = [
    {"id": "ng.directive:ngClick", "html": "<h1>ngClick</h1>"},
    {"id": "ng.filter:currency", "html": "<h1>currency</h1>"},
]


@pytest.fixture
def scenario_state() -> dict[str, object]:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}


def _write_records(path: Path, records: list[dict[str, object]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(msgspec.json.encode(records))


def _as_path(value: object) -> Path:
    """Narrow a scenario state value to a ``Path``."""
    assert isinstance(value, Path), f"expected a Path, got {value!r}"
    return value


def _manifest(scenario_state: dict[str, object]) -> Manifest:
    dest = _as_path(scenario_state["dest"])
    return parse_manifest((dest / "js" / "docs-setup.js").read_text(encoding="utf-8"))


@given("a site config with api and guide targets")
def given_site_config(tmp_path: Path, scenario_state: dict[str, object]) -> None:
    """Write ``ngdocs.yaml`` plus one record file per target.

    Parameters
    ----------
    tmp_path : Path
        Temporary directory holding the config, records and generated site.
    scenario_state : dict[str, object]
        Receives ``config``, ``dest`` and ``records`` paths for later steps.
    """
    records = tmp_path / "records"
    _write_records(records / "api.json", API_RECORDS)
    _write_records(records / "guide.json", [{"id": "tutorial", "html": "<p>t</p>"}])
    config = tmp_path / "ngdocs.yaml"
    config.write_text(
        f"""
defaults:
  dest: {tmp_path / "site"}
  source_link: false
  edit_link: false
targets:
  api:
    files:
      - src: records/api.json
        title: API Reference
  guide:
    files:
      - src: records/guide.json
        title: Developer Guide
""".strip()
        + "\n",
        encoding="utf-8",
    )
    scenario_state["config"] = config
    scenario_state["dest"] = tmp_path / "site"
    scenario_state["records"] = records


@when(parsers.parse('I build the "{target}" target'))
def when_build_target(target: str, scenario_state: dict[str, object]) -> None:
    """Run ``ngdocs build --target <target>``."""
    cli.build(target=target, config=_as_path(scenario_state["config"]))


@when(parsers.parse('the api records shrink to "{doc_id}"'))
def when_records_shrink(doc_id: str, scenario_state: dict[str, object]) -> None:
    records = _as_path(scenario_state["records"])
    kept = [record for record in API_RECORDS if record["id"] == doc_id]
    _write_records(records / "api.json", kept)


@then(parsers.parse('the manifest lists the sections "{sections}"'))
def then_sections(sections: str, scenario_state: dict[str, object]) -> None:
    assert "|".join(_manifest(scenario_state).sections) == sections


@then(parsers.parse('the "{section}" section still holds the pages "{pages}"'))
@then(parsers.parse('the "{section}" section holds the pages "{pages}"'))
def then_section_pages(
    section: str, pages: str, scenario_state: dict[str, object]
) -> None:
    """Compare the section's page ids, in manifest order."""
    expected = [page.strip() for page in pages.split(",")]
    actual = [page["id"] for page in _manifest(scenario_state).section_pages(section)]
    assert actual == expected, f"unexpected pages for section {section!r}"


@then(parsers.parse('the "{section}" section is titled "{title}"'))
def then_section_title(section: str, title: str, scenario_state: dict[str, object]) -> None:
    assert _manifest(scenario_state).sections[section] == title


@then("the index page links the manifest and loader scripts")
def then_index_scripts(scenario_state: dict[str, object]) -> None:
    dest = _as_path(scenario_state["dest"])
    soup = BeautifulSoup((dest / "index.html").read_text(encoding="utf-8"), "html.parser")
    sources = [tag["src"] for tag in soup.find_all("script", src=True)]
    assert sources == ["js/docs-setup.js", "js/docs.js"]
    body = soup.body
    assert body is not None
    assert body["data-sections"] == "api|guide"
