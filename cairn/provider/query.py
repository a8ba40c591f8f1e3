"""Code search query construction for catalog file discovery."""

from __future__ import annotations

import dataclasses

# Trim the search payload to what is needed to build file URLs: drop content
# match excerpts and every nested ``links`` block except the repository web link.
SEARCH_FIELDS: tuple[str, ...] = (
    "-values.content_matches",
    "+values.file.commit.repository.mainbranch.name",
    "+values.file.commit.repository.project.key",
    "+values.file.commit.repository.slug",
    "-values.*.links",
    "-values.*.*.links",
    "-values.*.*.*.links",
    "+values.file.commit.repository.links.html.href",
)


@dataclasses.dataclass(frozen=True, slots=True)
class SearchQuery:
    """A code search query and its response field projection."""

    query: str
    fields: str


def catalog_filename(catalog_path: str) -> str:
    """Return the last segment of ``catalog_path``.

    Examples
    --------
    >>> catalog_filename("/services/**/catalog-info.yaml")
    'catalog-info.yaml'
    >>> catalog_filename("catalog-info.yaml")
    'catalog-info.yaml'

    """
    return catalog_path[catalog_path.rfind("/") + 1 :]


def build_search_query(catalog_path: str, repo_slug: str | None = None) -> SearchQuery:
    """Build the search for files named like ``catalog_path`` at that path.

    ``repo_slug`` narrows the search to a single repository.

    Examples
    --------
    >>> build_search_query("/catalog-info.yaml", "api").query
    '"catalog-info.yaml" path:/catalog-info.yaml repo:api'

    """
    repo_scope = f" repo:{repo_slug}" if repo_slug else ""
    query = f'"{catalog_filename(catalog_path)}" path:{catalog_path}{repo_scope}'
    return SearchQuery(query=query, fields=",".join(SEARCH_FIELDS))
