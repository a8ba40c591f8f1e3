"""Typed Bitbucket Cloud payloads used for catalog file discovery.

Only the attributes the discovery flow reads are modelled. Search requests
ask for a trimmed field projection, so almost everything is optional and
unknown keys are ignored on decode.
"""

from __future__ import annotations

import typing as typ

import msgspec

from .errors import BitbucketResponseShapeError


class Link(msgspec.Struct, kw_only=True):
    """Hyperlink object as returned inside ``links`` blocks."""

    href: str | None = None


class RepositoryLinks(msgspec.Struct, kw_only=True):
    """Repository ``links`` block; only the web link is requested."""

    html: Link | None = None


class Project(msgspec.Struct, kw_only=True):
    """Workspace project a repository belongs to."""

    key: str | None = None


class Branch(msgspec.Struct, kw_only=True):
    """Branch reference, used for ``mainbranch``."""

    name: str | None = None


class Workspace(msgspec.Struct, kw_only=True):
    """Workspace reference carried by webhook payloads."""

    slug: str


class Repository(msgspec.Struct, kw_only=True):
    """Repository as embedded in search results and push webhooks.

    Attributes
    ----------
    slug : str
        Repository slug, unique within its workspace.
    project : Project, optional
        Owning project; absent for personal repositories.
    mainbranch : Branch, optional
        Default branch when the repository has one.
    links : RepositoryLinks, optional
        Links block holding the canonical web URL.
    workspace : Workspace, optional
        Owning workspace; populated on webhook payloads.

    """

    slug: str
    project: Project | None = None
    mainbranch: Branch | None = None
    links: RepositoryLinks | None = None
    workspace: Workspace | None = None

    @property
    def web_url(self) -> str:
        """Return the canonical web URL of the repository."""
        href = self.links.html.href if self.links and self.links.html else None
        if not href:
            raise BitbucketResponseShapeError.missing("repository.links.html.href")
        return href

    @property
    def default_branch(self) -> str | None:
        """Return the default branch name, if the payload carries one."""
        return self.mainbranch.name if self.mainbranch else None

    @property
    def project_key(self) -> str | None:
        """Return the owning project key, if any."""
        return self.project.key if self.project else None


class SearchCommit(msgspec.Struct, kw_only=True):
    """Commit reference of a code search hit."""

    repository: Repository | None = None


class SearchFile(msgspec.Struct, kw_only=True):
    """File reference of a code search hit."""

    path: str | None = None
    commit: SearchCommit | None = None


class CodeSearchResult(msgspec.Struct, kw_only=True):
    """A single code search hit.

    An empty ``path_matches`` list marks a content-only match.
    """

    path_matches: list[dict[str, typ.Any]] = msgspec.field(default_factory=list)
    file: SearchFile | None = None

    @property
    def is_path_match(self) -> bool:
        """Return True when the hit matched the file path."""
        return len(self.path_matches) > 0

    @property
    def repository(self) -> Repository:
        """Return the repository owning the matched file."""
        commit = self.file.commit if self.file else None
        if commit is None or commit.repository is None:
            raise BitbucketResponseShapeError.missing("file.commit.repository")
        return commit.repository

    @property
    def file_path(self) -> str:
        """Return the repository-relative path of the matched file."""
        if self.file is None or not self.file.path:
            raise BitbucketResponseShapeError.missing("file.path")
        return self.file.path


class SearchResultPage(msgspec.Struct, kw_only=True):
    """One page of a paginated code search response."""

    values: list[CodeSearchResult] = msgspec.field(default_factory=list)
    next: str | None = None
    page: int | None = None
    pagelen: int | None = None
    size: int | None = None


class PushRepository(Repository, kw_only=True):
    """Repository block of a ``repo:push`` webhook; workspace is mandatory."""

    workspace: Workspace


class RepoPushEvent(msgspec.Struct, kw_only=True):
    """Payload of a ``repo:push`` webhook.

    Change details are not modelled: a push only triggers a rescan of the
    repository, it is never inspected commit by commit.
    """

    repository: PushRepository


def decode_push_event(payload: object) -> RepoPushEvent:
    """Convert a raw webhook payload into a :class:`RepoPushEvent`."""
    if isinstance(payload, RepoPushEvent):
        return payload
    try:
        return msgspec.convert(payload, type=RepoPushEvent)
    except msgspec.ValidationError as exc:
        raise BitbucketResponseShapeError.undecodable("repo:push event", exc) from exc
