"""Behaviour tests for collapsing a generated site into one page.

Backed by ``features/inline_site.feature``. A minimal generated site is laid
out by hand so the scenarios focus on the inlining step alone.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from bs4 import BeautifulSoup
from pytest_bdd import given, parsers, scenarios, then, when

from ngdocs_site.inliner import TEMPLATE_SCRIPT_TYPE, FragmentCodec, InlineError, inline_site

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "inline_site.feature"
scenarios(FEATURE_FILE)

WIDGET = '<h1>Widget</h1><script type="text/javascript">init("</SCRIPT>")</script>'


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    """Return the directory the generated site lives in."""
    return tmp_path / "site"


@given("a generated site with a partial containing a script")
def given_generated_site(site_dir: Path) -> None:
    partial = site_dir / "partials" / "api" / "widget.html"
    partial.parent.mkdir(parents=True)
    partial.write_text(WIDGET, encoding="utf-8")
    (site_dir / "index.html").write_text(
        '<html><body class="docs"><main></main></body></html>', encoding="utf-8"
    )


@when("I inline the site")
def when_inline(site_dir: Path) -> None:
    inline_site(site_dir)


def _template(site_dir: Path, template_id: str) -> str:
    soup = BeautifulSoup(
        (site_dir / "index.html").read_text(encoding="utf-8"), "html.parser"
    )
    block = soup.find("script", type=TEMPLATE_SCRIPT_TYPE, id=template_id)
    assert block is not None, f"no inline template with id {template_id!r}"
    return str(block.string)


@then(parsers.parse('the index page embeds "{template_id}"'))
def then_embeds(site_dir: Path, template_id: str) -> None:
    assert _template(site_dir, template_id)


@then("the embedded template decodes to the original partial")
def then_decodes(site_dir: Path) -> None:
    encoded = _template(site_dir, "partials/api/widget.html")
    assert FragmentCodec().decode(encoded) == WIDGET


@then("no partial files remain")
def then_no_partials(site_dir: Path) -> None:
    assert not list((site_dir / "partials").rglob("*.html"))


@then("inlining the site again fails")
def then_second_inline_fails(site_dir: Path) -> None:
    with pytest.raises(InlineError):
        inline_site(site_dir)
