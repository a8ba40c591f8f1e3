"""Catalog file discovery over Bitbucket Cloud code search."""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

from cairn.logging import format_fields, get_logger, log_debug

from .entities import IngestionTarget
from .filters import matches_filters
from .query import build_search_query
from .urls import file_url

if typ.TYPE_CHECKING:
    from cairn.bitbucket.client import CodeSearchClient

    from .config import ProviderFilters

logger = get_logger(__name__)


class CatalogFileScanner:
    """Turn code search hits into ingestion targets.

    Only path matches are considered; hits that matched file contents alone
    are skipped. Repositories rejected by ``filters`` never produce targets,
    and a file repeated across result pages is yielded once.
    Search and decoding errors propagate to the caller unchanged.
    """

    def __init__(
        self, client: CodeSearchClient, filters: ProviderFilters | None = None
    ) -> None:
        """Initialise with a search client and optional repository filters."""
        self._client = client
        self._filters = filters

    async def scan(
        self,
        workspace: str,
        catalog_path: str,
        repo_slug: str | None = None,
    ) -> cabc.AsyncIterator[IngestionTarget]:
        """Yield a target for every catalog file found in ``workspace``.

        Parameters
        ----------
        workspace
            Workspace slug to search.
        catalog_path
            Path pattern of catalog files, e.g. ``/catalog-info.yaml``.
        repo_slug
            Restrict the search to one repository.

        """
        search = build_search_query(catalog_path, repo_slug)
        seen: set[str] = set()
        async for result in self._client.search_code(
            workspace, search.query, fields=search.fields
        ):
            if not result.is_path_match:
                continue
            repository = result.repository
            if not matches_filters(self._filters, repository):
                log_debug(
                    logger,
                    "Skipping filtered repository %s",
                    format_fields(workspace=workspace, repo_slug=repository.slug),
                )
                continue
            url = file_url(repository, result.file_path)
            if url in seen:
                continue
            seen.add(url)
            yield IngestionTarget(file_url=url, repo_url=repository.web_url)
