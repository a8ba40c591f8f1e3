"""In-memory collaborators and payload builders for provider tests."""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import dataclasses
import typing as typ

import msgspec

from cairn.bitbucket.models import CodeSearchResult
from cairn.catalog.models import LocationSpec, location_entity_from_spec
from cairn.provider.entities import ANNOTATION_REPO_URL

if typ.TYPE_CHECKING:
    from cairn.catalog.models import EntityMutation, LocationEntity
    from cairn.scheduling import TaskInvocation

WORKSPACE = "acme"
BITBUCKET_WEB = "https://bitbucket.org"


def repo_url(slug: str, workspace: str = WORKSPACE) -> str:
    """Return the web URL Bitbucket Cloud reports for a repository."""
    return f"{BITBUCKET_WEB}/{workspace}/{slug}"


def file_url_for(
    slug: str,
    path: str = "catalog-info.yaml",
    branch: str = "main",
    workspace: str = WORKSPACE,
) -> str:
    """Return the file URL the provider builds for a search hit."""
    return f"{repo_url(slug, workspace)}/src/{branch}/{path}"


def repository_payload(
    slug: str,
    *,
    project_key: str | None = "PLAT",
    branch: str | None = "main",
    workspace: str | None = None,
) -> dict[str, typ.Any]:
    """Build a repository block as found in search hits and webhooks."""
    payload: dict[str, typ.Any] = {
        "slug": slug,
        "links": {"html": {"href": repo_url(slug, workspace or WORKSPACE)}},
    }
    if project_key is not None:
        payload["project"] = {"key": project_key}
    if branch is not None:
        payload["mainbranch"] = {"name": branch}
    if workspace is not None:
        payload["workspace"] = {"slug": workspace}
    return payload


def search_hit(
    slug: str,
    path: str = "catalog-info.yaml",
    *,
    project_key: str | None = "PLAT",
    branch: str | None = "main",
    path_match: bool = True,
) -> dict[str, typ.Any]:
    """Build one raw code search hit."""
    return {
        "path_matches": [{"text": path, "match": True}] if path_match else [],
        "content_matches": [],
        "file": {
            "path": path,
            "commit": {
                "repository": repository_payload(
                    slug, project_key=project_key, branch=branch
                )
            },
        },
    }


def push_payload(
    slug: str,
    *,
    workspace: str = WORKSPACE,
    project_key: str | None = "PLAT",
) -> dict[str, typ.Any]:
    """Build a ``repo:push`` webhook body."""
    return {
        "repository": repository_payload(
            slug, project_key=project_key, workspace=workspace
        ),
        "push": {"changes": []},
    }


def location_for(target: str | None, repository_url: str) -> LocationEntity:
    """Build an existing catalog Location discovered in ``repository_url``."""
    entity = location_entity_from_spec(LocationSpec(target=target))
    entity.metadata.annotations[ANNOTATION_REPO_URL] = repository_url
    return entity


class FakeSearchClient:
    """Serve canned search hits keyed by repository scope.

    Hits are split into pages of ``page_size`` to mirror pagination; each
    page fetch is counted. ``fail_after_pages`` raises once that many pages
    have been served.
    """

    def __init__(
        self,
        hits: cabc.Iterable[dict[str, typ.Any]] = (),
        *,
        page_size: int = 2,
        error: Exception | None = None,
        fail_after_pages: int | None = None,
    ) -> None:
        self.hits = list(hits)
        self.page_size = page_size
        self.error = error
        self.fail_after_pages = fail_after_pages
        self.calls: list[tuple[str, str, str | None]] = []
        self.pages_served = 0

    def scoped_hits(self, query: str) -> list[dict[str, typ.Any]]:
        if " repo:" not in query:
            return self.hits
        slug = query.rsplit(" repo:", 1)[1]
        return [
            hit
            for hit in self.hits
            if hit["file"]["commit"]["repository"]["slug"] == slug
        ]

    async def search_code(
        self, workspace: str, query: str, *, fields: str | None = None
    ) -> cabc.AsyncIterator[CodeSearchResult]:
        self.calls.append((workspace, query, fields))
        hits = self.scoped_hits(query)
        for start in range(0, max(len(hits), 1), self.page_size):
            if self.fail_after_pages is not None and (
                self.pages_served >= self.fail_after_pages
            ):
                raise self.error or RuntimeError("search failed")
            self.pages_served += 1
            await asyncio.sleep(0)
            for hit in hits[start : start + self.page_size]:
                yield msgspec.convert(hit, type=CodeSearchResult)


class RecordingConnection:
    """Entity provider connection that records applied mutations."""

    def __init__(
        self,
        *,
        error: Exception | None = None,
        probe: ConcurrencyProbe | None = None,
    ) -> None:
        self.mutations: list[EntityMutation] = []
        self.error = error
        self.probe = probe

    async def apply_mutation(self, mutation: EntityMutation) -> None:
        if self.probe is not None:
            await self.probe.enter()
        try:
            await asyncio.sleep(0)
            if self.error is not None:
                raise self.error
            self.mutations.append(mutation)
        finally:
            if self.probe is not None:
                self.probe.exit()


@dataclasses.dataclass
class ConcurrencyProbe:
    """Track how many catalog calls are in flight at once."""

    in_flight: int = 0
    peak: int = 0
    calls: int = 0

    async def enter(self) -> None:
        self.calls += 1
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        # Hold the slot across several loop turns so siblings overlap.
        for _ in range(3):
            await asyncio.sleep(0)

    def exit(self) -> None:
        self.in_flight -= 1


class FakeCatalogApi:
    """Catalog API returning fixed entities and recording refreshes."""

    def __init__(
        self,
        entities: cabc.Iterable[LocationEntity] = (),
        *,
        failing_refs: cabc.Collection[str] = (),
        probe: ConcurrencyProbe | None = None,
    ) -> None:
        self.entities = list(entities)
        self.failing_refs = set(failing_refs)
        self.probe = probe
        self.queries: list[tuple[dict[str, str], str | None]] = []
        self.refreshed: list[tuple[str, str | None]] = []

    async def get_entities(
        self, *, filter: cabc.Mapping[str, str], token: str | None = None  # noqa: A002
    ) -> list[LocationEntity]:
        self.queries.append((dict(filter), token))
        repo_key = "metadata.annotations.bitbucket.org/repo-url"
        return [
            entity
            for entity in self.entities
            if entity.kind == filter.get("kind")
            and entity.metadata.annotations.get(ANNOTATION_REPO_URL)
            == filter.get(repo_key)
        ]

    async def refresh_entity(
        self, entity_ref: str, *, token: str | None = None
    ) -> None:
        if self.probe is not None:
            await self.probe.enter()
        try:
            if entity_ref in self.failing_refs:
                msg = f"refresh failed for {entity_ref}"
                raise RuntimeError(msg)
            self.refreshed.append((entity_ref, token))
        finally:
            if self.probe is not None:
                self.probe.exit()


class StaticTokenManager:
    """Token manager issuing one fixed token and counting requests."""

    def __init__(self, token: str = "catalog-token") -> None:
        self.token = token
        self.issued = 0

    async def get_token(self) -> str:
        self.issued += 1
        return self.token


class RecordingTaskRunner:
    """Task runner that only records registered tasks."""

    def __init__(self) -> None:
        self.tasks: list[TaskInvocation] = []

    async def run(self, task: TaskInvocation) -> None:
        self.tasks.append(task)
