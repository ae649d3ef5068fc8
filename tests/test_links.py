"""Unit tests for source/edit link resolution.

These tests cover repository slug extraction for the supported hosts, the
placeholder whitelist of link templates, and the once-per-run commit sha
lookup that backs the ``{sha}`` placeholder.

Usage
-----
Run ``pytest tests/test_links.py -v``. ``git`` is never invoked: the sha
lookup is either replaced with a counter or ``subprocess.run`` is mocked.
"""

from __future__ import annotations

import subprocess
import typing as typ

import pytest

from ngdocs_site.config import ConfigurationError
from ngdocs_site.links import (
    REPO_HOSTS,
    CommitShaResolver,
    LinkTemplate,
    LinkTemplateResolver,
    match_repo_host,
)
from ngdocs_site.project import ProjectDescriptor

if typ.TYPE_CHECKING:
    from pytest_mock import MockerFixture

GITHUB = ProjectDescriptor(
    name="tool", version="1.2.0", repository_url="https://github.com/octo/tool.git"
)


def _counting_sha(value: str = "abc1234") -> tuple[list[int], typ.Callable[[], str]]:
    calls: list[int] = []

    def resolver() -> str:
        calls.append(1)
        return value

    return calls, resolver


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://github.com/octo/tool.git", "octo/tool"),
        ("https://github.com/octo/tool", "octo/tool"),
        ("git@github.com:octo/tool.git", "octo/tool"),
        ("ssh://git@github.com/octo/tool.git", "octo/tool"),
        ("git+https://github.com/octo/tool.git#main", "octo/tool"),
        ("https://github.com/octo/octo.github.io.git", "octo/octo.github.io"),
        ("git@github.com:octo/octo.github.io", "octo/octo.github.io"),
    ],
)
def test_github_remotes_share_a_slug(url: str, expected: str) -> None:
    """Every spelling of a GitHub remote should reduce to ``owner/name``."""
    matched = match_repo_host(url)
    assert matched is not None, f"expected {url!r} to match a host"
    host, slug = matched
    assert host.name == "github"
    assert slug == expected


def test_gitlab_and_bitbucket_are_recognised() -> None:
    """Non-GitHub hosts map to their own default templates."""
    gitlab = match_repo_host("https://gitlab.com/group/proj.git")
    bitbucket = match_repo_host("git@bitbucket.org:team/repo.git")
    assert gitlab is not None
    assert gitlab[0].name == "gitlab"
    assert gitlab[1] == "group/proj"
    assert bitbucket is not None
    assert bitbucket[0].name == "bitbucket"
    assert bitbucket[1] == "team/repo"


def test_unknown_host_does_not_match() -> None:
    """Self-hosted remotes are not mistaken for a known service."""
    assert match_repo_host("https://git.example.com/octo/tool.git") is None
    assert all(host.repo_slug("not a url") is None for host in REPO_HOSTS)


def test_default_templates_for_github() -> None:
    """``True`` selects the host defaults, resolving the sha once."""
    calls, resolver = _counting_sha()
    links = LinkTemplateResolver(GITHUB, sha_resolver=resolver).resolve(True, True)

    assert links.source is not None
    assert links.edit is not None
    assert links.source("src/ng/http.js", 10, 12) == (
        "https://github.com/octo/tool/blob/abc1234/src/ng/http.js#L12"
    )
    assert links.source("src/ng/q.js", 1, 3).endswith("src/ng/q.js#L3")
    assert links.edit("src/ng/http.js") == (
        "https://github.com/octo/tool/edit/master/src/ng/http.js"
    )
    assert len(calls) == 1, "sha must be resolved once per run"


def test_custom_template_placeholders() -> None:
    """Path-derived placeholders are available to custom templates."""
    calls, resolver = _counting_sha()
    links = LinkTemplateResolver(GITHUB, sha_resolver=resolver).resolve(
        "https://x.test/{repo}/{version}/{filepath}/{filename}?l={line}", None
    )
    assert links.source is not None
    assert links.source("src/ng/http.js", 7, None) == (
        "https://x.test/octo/tool/1.2.0/src/ng/http.js?l=7"
    )
    assert links.edit is None
    assert calls == [], "templates without {sha} never resolve it"


def test_missing_line_renders_empty() -> None:
    """``None`` line values render as empty strings."""
    links = LinkTemplateResolver(ProjectDescriptor()).resolve(
        "https://x.test/{file}#L{line}", None
    )
    assert links.source is not None
    assert links.source("a.js", None, None) == "https://x.test/a.js#L"


def test_version_defaults_to_master() -> None:
    """Projects without a version link against ``master``."""
    links = LinkTemplateResolver(ProjectDescriptor()).resolve("/{version}/{file}", None)
    assert links.source is not None
    assert links.source("a.js", None, None) == "/master/a.js"


def test_true_without_known_host_disables_links() -> None:
    """Host defaults are unavailable, so the links are omitted."""
    for project in (
        ProjectDescriptor(),
        ProjectDescriptor(repository_url="https://git.example.com/a/b.git"),
    ):
        links = LinkTemplateResolver(project).resolve(True, True)
        assert links.source is None
        assert links.edit is None


def test_false_disables_links() -> None:
    links = LinkTemplateResolver(GITHUB).resolve(False, None)
    assert links.source is None
    assert links.edit is None


def test_repo_placeholder_requires_repository() -> None:
    """A template that needs ``{repo}`` fails when no repository is known."""
    resolver = LinkTemplateResolver(ProjectDescriptor())
    with pytest.raises(ConfigurationError, match=r"\{repo\}"):
        resolver.resolve("https://github.com/{repo}/{file}", None)


@pytest.mark.parametrize(
    "template",
    [
        "https://x.test/{repo.__class__}",
        "https://x.test/{file[0]}",
        "https://x.test/{file!r}",
        "https://x.test/{line:>5}",
        "https://x.test/{unknown}",
        "https://x.test/{0}",
        "https://x.test/{file",
    ],
)
def test_invalid_templates_are_rejected(template: str) -> None:
    """Only bare whitelisted placeholders are accepted."""
    with pytest.raises(ConfigurationError, match="Invalid link template"):
        LinkTemplate(template)


def test_template_fields() -> None:
    template = LinkTemplate("https://x.test/{repo}/{file}#L{line}")
    assert template.fields == frozenset({"repo", "file", "line"})
    assert LinkTemplate("https://x.test/{{literal}}").fields == frozenset()


def test_sha_resolver_caches_git_output(mocker: MockerFixture) -> None:
    """``git rev-parse HEAD`` runs once and its output is truncated."""
    run = mocker.patch(
        "ngdocs_site.links.subprocess.run",
        return_value=subprocess.CompletedProcess(
            args=[], returncode=0, stdout="0123456789abcdef\n", stderr=""
        ),
    )
    resolver = CommitShaResolver()

    assert resolver() == "0123456"
    assert resolver() == "0123456"
    run.assert_called_once()
    assert run.call_args.args[0] == ["git", "rev-parse", "HEAD"]


def test_sha_resolver_uses_raw_output_on_failure(mocker: MockerFixture) -> None:
    """A failing git call is not an error; its output stands in for the sha."""
    mocker.patch(
        "ngdocs_site.links.subprocess.run",
        return_value=subprocess.CompletedProcess(
            args=[], returncode=128, stdout="", stderr="fatal: not a git repository"
        ),
    )
    assert CommitShaResolver()() == "fatal: "


def test_sha_resolver_handles_missing_git(mocker: MockerFixture) -> None:
    mocker.patch(
        "ngdocs_site.links.subprocess.run",
        side_effect=FileNotFoundError(2, "No such file or directory"),
    )
    assert CommitShaResolver()() == "[Errno "
