"""Build source and edit links that point back at the documented repository.

Readers attach "view source" and "improve this doc" links to every rendered
page. Those links come from URL templates such as::

    https://github.com/{repo}/blob/{sha}/{file}#L{codeline}

Placeholders use single braces so they never collide with the ``{{ }}``
expressions of the Jinja templates the links end up embedded in. Supported
placeholders are ``repo``, ``version``, ``sha``, ``file``, ``line``,
``codeline``, ``filepath`` and ``filename``. Anything else (attribute access,
indexing, conversions, format specs) is rejected when the template is
compiled, so a template can only ever splice in these plain values.

Passing ``True`` instead of a template selects the defaults of the hosting
service that matches the project's repository URL.

Examples
--------
>>> from ngdocs_site.project import ProjectDescriptor
>>> project = ProjectDescriptor(repository_url="git@github.com:octo/tool.git")
>>> links = LinkTemplateResolver(project).resolve(
...     "https://github.com/{repo}/tree/{version}/{file}", None
... )
>>> links.source("src/app.js", 3, 10)
'https://github.com/octo/tool/tree/master/src/app.js'
>>> links.edit is None
True
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import re
import string
import subprocess
import typing as typ
from pathlib import Path, PurePosixPath

from .config import ConfigurationError

if typ.TYPE_CHECKING:
    from .project import ProjectDescriptor

LinkFunction = cabc.Callable[[str, int | None, int | None], str]

PLACEHOLDERS = frozenset(
    {"repo", "version", "sha", "file", "line", "codeline", "filepath", "filename"}
)
DEFAULT_VERSION = "master"
SHA_LENGTH = 7


def _host_pattern(domain: str) -> re.Pattern[str]:
    """Match HTTPS/SSH remotes for ``domain``, capturing ``owner/name``."""
    host = re.escape(domain)
    return re.compile(
        rf"(?:https?|ssh|git)://(?:[^@/]+@)?{host}(?::\d+)?/([^/]+/[^/#?]+)"
        rf"|git@{host}:/?([^/]+/[^/#?]+)"
    )


@dc.dataclass(frozen=True, slots=True)
class RepoHost:
    """A known code hosting service and its default link templates."""

    name: str
    pattern: re.Pattern[str]
    suffix: re.Pattern[str]
    source_link: str
    edit_link: str

    def repo_slug(self, url: str) -> str | None:
        """Return ``owner/name`` for ``url`` or ``None`` when it is not ours."""
        match = self.pattern.search(url)
        if not match:
            return None
        slug = match.group(1) or match.group(2)
        return self.suffix.sub("", slug).rstrip("/")


_GIT_SUFFIX = re.compile(r"\.git/?$")

REPO_HOSTS: tuple[RepoHost, ...] = (
    RepoHost(
        name="github",
        pattern=_host_pattern("github.com"),
        suffix=_GIT_SUFFIX,
        source_link="https://github.com/{repo}/blob/{sha}/{file}#L{codeline}",
        edit_link="https://github.com/{repo}/edit/master/{file}",
    ),
    RepoHost(
        name="gitlab",
        pattern=_host_pattern("gitlab.com"),
        suffix=_GIT_SUFFIX,
        source_link="https://gitlab.com/{repo}/-/blob/{sha}/{file}#L{codeline}",
        edit_link="https://gitlab.com/{repo}/-/edit/master/{file}",
    ),
    RepoHost(
        name="bitbucket",
        pattern=_host_pattern("bitbucket.org"),
        suffix=_GIT_SUFFIX,
        source_link="https://bitbucket.org/{repo}/src/{sha}/{file}#lines-{codeline}",
        edit_link="https://bitbucket.org/{repo}/src/master/{file}?mode=edit",
    ),
)


def match_repo_host(
    url: str, hosts: cabc.Iterable[RepoHost] = REPO_HOSTS
) -> tuple[RepoHost, str] | None:
    """Return the first host matching ``url`` together with the repo slug."""
    for host in hosts:
        slug = host.repo_slug(url)
        if slug:
            return host, slug
    return None


class CommitShaResolver:
    """Resolve the abbreviated ``HEAD`` commit once and remember it.

    A failing ``git`` invocation is not an error: whatever the command printed
    (or the reason it could not start) is truncated like a real sha and used
    in its place.
    """

    def __init__(self, cwd: Path | None = None, *, git_exe: str = "git") -> None:
        self.cwd = cwd
        self.git_exe = git_exe
        self._sha: str | None = None

    def __call__(self) -> str:
        """Return the cached short sha, resolving it on first use."""
        if self._sha is None:
            self._sha = self._run_git()[:SHA_LENGTH]
        return self._sha

    def _run_git(self) -> str:
        try:
            result = subprocess.run(  # noqa: S603
                [self.git_exe, "rev-parse", "HEAD"],
                cwd=self.cwd,
                check=False,
                text=True,
                capture_output=True,
            )
        except OSError as exc:
            return str(exc)
        if result.returncode == 0:
            return result.stdout
        return result.stdout + result.stderr


class LinkTemplate:
    """A validated URL template with single-brace placeholders."""

    def __init__(self, template: str) -> None:
        self.template = template
        self.fields = _parse_fields(template)

    def render(self, values: cabc.Mapping[str, object]) -> str:
        """Substitute ``values`` into the template."""
        return self.template.format_map(
            {key: "" if value is None else value for key, value in values.items()}
        )


def _parse_fields(template: str) -> frozenset[str]:
    """Return the placeholder names used by ``template``.

    Raises
    ------
    ConfigurationError
        If the template is malformed or uses anything but bare placeholders.
    """
    fields: set[str] = set()
    try:
        parsed = list(string.Formatter().parse(template))
    except ValueError as exc:
        msg = f"Invalid link template '{template}': {exc}"
        raise ConfigurationError(msg) from exc
    for _literal, field_name, format_spec, conversion in parsed:
        if field_name is None:
            continue
        if field_name not in PLACEHOLDERS or format_spec or conversion:
            msg = (
                f"Invalid link template '{template}': unsupported placeholder "
                f"'{{{field_name}}}'. Allowed: {', '.join(sorted(PLACEHOLDERS))}."
            )
            raise ConfigurationError(msg)
        fields.add(field_name)
    return frozenset(fields)


@dc.dataclass(frozen=True, slots=True)
class ResolvedLinks:
    """Source and edit link functions for one run; ``None`` omits the link."""

    source: LinkFunction | None
    edit: LinkFunction | None


class LinkTemplateResolver:
    """Turn link options and project metadata into link functions."""

    def __init__(
        self,
        project: ProjectDescriptor,
        *,
        hosts: cabc.Sequence[RepoHost] = REPO_HOSTS,
        sha_resolver: cabc.Callable[[], str] | None = None,
    ) -> None:
        self.project = project
        self.hosts = hosts
        self.sha_resolver = sha_resolver or CommitShaResolver()

    def resolve(
        self, source_link: str | bool | None, edit_link: str | bool | None
    ) -> ResolvedLinks:
        """Build the run's link functions.

        ``True`` picks the matching host's default template; when no host
        matches the repository URL (or there is none) the link is disabled.

        Raises
        ------
        ConfigurationError
            If a template is invalid or needs a repository that is unknown.
        """
        values: dict[str, object] = {
            "version": self.project.version or DEFAULT_VERSION
        }
        url = self.project.repository_url
        matched = match_repo_host(url, self.hosts) if url else None
        if matched:
            host, values["repo"] = matched
            if source_link is True:
                source_link = host.source_link
            if edit_link is True:
                edit_link = host.edit_link
        return ResolvedLinks(
            source=self._make_link_fn(source_link, values),
            edit=self._make_link_fn(edit_link, values),
        )

    def _make_link_fn(
        self, template: str | bool | None, values: dict[str, object]
    ) -> LinkFunction | None:
        if not template or template is True:
            return None
        compiled = LinkTemplate(str(template))
        if "repo" in compiled.fields and "repo" not in values:
            msg = (
                f"Link template '{compiled.template}' uses {{repo}} but the "
                "project repository URL is missing or not recognised."
            )
            raise ConfigurationError(msg)
        if "sha" in compiled.fields and "sha" not in values:
            values["sha"] = self.sha_resolver()
        bound = dict(values)

        def link(file: str, line: int | None = None, codeline: int | None = None) -> str:
            posix = PurePosixPath(file)
            return compiled.render(
                {
                    **bound,
                    "file": file,
                    "line": line,
                    "codeline": codeline,
                    "filepath": str(posix.parent),
                    "filename": posix.name,
                }
            )

        return link


__all__ = [
    "DEFAULT_VERSION",
    "PLACEHOLDERS",
    "REPO_HOSTS",
    "CommitShaResolver",
    "LinkFunction",
    "LinkTemplate",
    "LinkTemplateResolver",
    "RepoHost",
    "ResolvedLinks",
    "match_repo_host",
]
