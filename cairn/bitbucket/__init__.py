"""Bitbucket Cloud client, payload models and errors."""

from __future__ import annotations

from .client import (
    BITBUCKET_CLOUD_API_BASE_URL,
    BITBUCKET_CLOUD_HOST,
    BitbucketCloudClient,
    BitbucketCloudConfig,
    CodeSearchClient,
)
from .errors import BitbucketAPIError, BitbucketConfigError, BitbucketResponseShapeError
from .models import (
    CodeSearchResult,
    RepoPushEvent,
    Repository,
    SearchResultPage,
    decode_push_event,
)

__all__ = [
    "BITBUCKET_CLOUD_API_BASE_URL",
    "BITBUCKET_CLOUD_HOST",
    "BitbucketAPIError",
    "BitbucketCloudClient",
    "BitbucketCloudConfig",
    "BitbucketConfigError",
    "BitbucketResponseShapeError",
    "CodeSearchClient",
    "CodeSearchResult",
    "RepoPushEvent",
    "Repository",
    "SearchResultPage",
    "decode_push_event",
]
