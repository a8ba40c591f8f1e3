"""Catalog file discovery and Location reconciliation for Bitbucket Cloud."""

from __future__ import annotations

from .config import (
    BitbucketCloudProviderConfig,
    ProviderFilters,
    read_integration_configs,
    read_provider_configs,
)
from .engine import (
    EVENT_KEY_REPO_PUSH,
    TOPIC_REPO_PUSH,
    BitbucketCloudEntityProvider,
    LocationDiff,
    diff_locations,
    existing_locations_filter,
    provider_name_for,
    unique_targets,
)
from .entities import ANNOTATION_REPO_URL, IngestionTarget, to_deferred_entities
from .errors import (
    DeltaRefreshError,
    EventHandlingMisconfiguredError,
    NotInitializedError,
    ProviderConfigurationError,
    ProviderError,
)
from .filters import matches_filters
from .gateway import MUTATION_CONCURRENCY_LIMIT, MutationGateway
from .observability import (
    ErrorCategory,
    ProviderEventLogger,
    ProviderEventType,
    categorize_error,
)
from .query import SEARCH_FIELDS, SearchQuery, build_search_query
from .scanner import CatalogFileScanner
from .urls import DEFAULT_BRANCH, file_url

__all__ = [
    "ANNOTATION_REPO_URL",
    "DEFAULT_BRANCH",
    "EVENT_KEY_REPO_PUSH",
    "MUTATION_CONCURRENCY_LIMIT",
    "SEARCH_FIELDS",
    "TOPIC_REPO_PUSH",
    "BitbucketCloudEntityProvider",
    "BitbucketCloudProviderConfig",
    "CatalogFileScanner",
    "DeltaRefreshError",
    "ErrorCategory",
    "EventHandlingMisconfiguredError",
    "IngestionTarget",
    "LocationDiff",
    "MutationGateway",
    "NotInitializedError",
    "ProviderConfigurationError",
    "ProviderError",
    "ProviderEventLogger",
    "ProviderEventType",
    "ProviderFilters",
    "SearchQuery",
    "build_search_query",
    "categorize_error",
    "diff_locations",
    "existing_locations_filter",
    "file_url",
    "matches_filters",
    "provider_name_for",
    "read_integration_configs",
    "read_provider_configs",
    "to_deferred_entities",
    "unique_targets",
]
