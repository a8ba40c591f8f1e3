"""Structured lifecycle events for provider refreshes.

Events are emitted as ``[<event type>] key=value ...`` lines so log
aggregators can parse them without a structured handler.
"""

from __future__ import annotations

import enum

from cairn.bitbucket.errors import (
    BitbucketAPIError,
    BitbucketConfigError,
    BitbucketResponseShapeError,
)
from cairn.catalog.errors import CatalogAPIError
from cairn.config import ConfigValidationError
from cairn.logging import format_fields, get_logger, log_error, log_info

from .errors import DeltaRefreshError, ProviderConfigurationError

logger = get_logger(__name__)

# HTTP status code threshold for server errors (5xx)
_HTTP_SERVER_ERROR_THRESHOLD = 500


class ProviderEventType(enum.StrEnum):
    """Structured log event types for provider refreshes."""

    REFRESH_STARTED = "provider.refresh.started"
    REFRESH_COMPLETED = "provider.refresh.completed"
    REFRESH_FAILED = "provider.refresh.failed"
    DELTA_STARTED = "provider.delta.started"
    DELTA_COMPLETED = "provider.delta.completed"
    DELTA_IGNORED = "provider.delta.ignored"


class ErrorCategory(enum.StrEnum):
    """Categories for error classification in alerts."""

    TRANSIENT = "transient"
    CLIENT_ERROR = "client_error"
    SCHEMA_DRIFT = "schema_drift"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (BitbucketResponseShapeError, ErrorCategory.SCHEMA_DRIFT),
    (BitbucketConfigError, ErrorCategory.CONFIGURATION),
    (ConfigValidationError, ErrorCategory.CONFIGURATION),
    (ProviderConfigurationError, ErrorCategory.CONFIGURATION),
    (TimeoutError, ErrorCategory.TRANSIENT),
    (ConnectionError, ErrorCategory.TRANSIENT),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize an exception for alerting purposes.

    Errors from either upstream are transient for 5xx responses, timeouts
    and network failures, and client errors otherwise. A failed delta
    refresh is categorized by its first failure.
    """
    if isinstance(exc, DeltaRefreshError) and exc.exceptions:
        return categorize_error(exc.exceptions[0])

    if isinstance(exc, BitbucketAPIError | CatalogAPIError):
        if exc.transient or (
            exc.status_code is not None
            and exc.status_code >= _HTTP_SERVER_ERROR_THRESHOLD
        ):
            return ErrorCategory.TRANSIENT
        return ErrorCategory.CLIENT_ERROR

    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category

    return ErrorCategory.UNKNOWN


class ProviderEventLogger:
    """Emit structured provider events through femtologging."""

    def __init__(self, provider_name: str) -> None:
        """Bind events to ``provider_name``."""
        self._provider_name = provider_name

    def refresh_started(self, task_instance_id: str | None) -> None:
        """Log the start of a full refresh."""
        log_info(
            logger,
            "[%s] %s",
            ProviderEventType.REFRESH_STARTED,
            format_fields(
                provider=self._provider_name, task_instance_id=task_instance_id
            ),
        )

    def refresh_completed(
        self, task_instance_id: str | None, committed: int, duration_s: float
    ) -> None:
        """Log a committed full refresh."""
        log_info(
            logger,
            "[%s] %s",
            ProviderEventType.REFRESH_COMPLETED,
            format_fields(
                provider=self._provider_name,
                task_instance_id=task_instance_id,
                committed=committed,
                duration_seconds=f"{duration_s:.3f}",
            ),
        )

    def refresh_failed(
        self, task_id: str, task_instance_id: str, error: BaseException
    ) -> None:
        """Log a scheduled refresh failure with its error category."""
        log_error(
            logger,
            "[%s] %s error_message=%s",
            ProviderEventType.REFRESH_FAILED,
            format_fields(
                provider=self._provider_name,
                task_id=task_id,
                task_instance_id=task_instance_id,
                error_type=type(error).__name__,
                error_category=categorize_error(error),
            ),
            str(error),
            exc_info=error,
        )

    def delta_started(self, repo_url: str) -> None:
        """Log the start of a delta refresh for one repository."""
        log_info(
            logger,
            "[%s] %s",
            ProviderEventType.DELTA_STARTED,
            format_fields(provider=self._provider_name, repo_url=repo_url),
        )

    def delta_completed(
        self, repo_url: str, *, added: int, removed: int, refreshed: int
    ) -> None:
        """Log the outcome of a delta refresh."""
        log_info(
            logger,
            "[%s] %s",
            ProviderEventType.DELTA_COMPLETED,
            format_fields(
                provider=self._provider_name,
                repo_url=repo_url,
                added=added,
                removed=removed,
                refreshed=refreshed,
            ),
        )

    def delta_ignored(self, repo_slug: str, reason: str) -> None:
        """Log a push event that does not concern this provider."""
        log_info(
            logger,
            "[%s] %s",
            ProviderEventType.DELTA_IGNORED,
            format_fields(
                provider=self._provider_name, repo_slug=repo_slug, reason=reason
            ),
        )
