"""Repository filtering by project key and slug patterns."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from cairn.bitbucket.models import Repository

    from .config import ProviderFilters


def matches_filters(filters: ProviderFilters | None, repository: Repository) -> bool:
    """Return True when ``repository`` passes every configured pattern.

    A missing pattern always passes. A repository without a project never
    matches a configured project key pattern.
    """
    if filters is None:
        return True

    if filters.project_key is not None:
        project_key = repository.project_key
        if project_key is None or filters.project_key.search(project_key) is None:
            return False

    if filters.repo_slug is not None:
        return filters.repo_slug.search(repository.slug) is not None
    return True
