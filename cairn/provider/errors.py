"""Exceptions raised by Bitbucket Cloud entity providers."""

from __future__ import annotations

import collections.abc as cabc


class ProviderError(Exception):
    """Base exception for provider failures."""


class ProviderConfigurationError(ProviderError):
    """Raised when a provider cannot be constructed from its configuration."""

    @classmethod
    def no_integration(cls, host: str) -> ProviderConfigurationError:
        """Create error for a missing host integration."""
        return cls(f"No integration for {host} available")

    @classmethod
    def no_task_runner(cls) -> ProviderConfigurationError:
        """Create error for a factory call without any way to schedule."""
        return cls("Either schedule or scheduler must be provided.")

    @classmethod
    def no_schedule(cls, provider_name: str) -> ProviderConfigurationError:
        """Create error for a provider with neither code nor config schedule."""
        return cls(
            "No schedule provided neither via code nor config "
            f"for {provider_name}."
        )


class NotInitializedError(ProviderError):
    """Raised when a refresh runs before the provider is connected."""

    @classmethod
    def for_provider(cls, provider_name: str) -> NotInitializedError:
        """Create error naming the unconnected provider."""
        return cls(f"{provider_name} is not initialized; call connect() first")


class EventHandlingMisconfiguredError(ProviderError):
    """Raised once when push events arrive without catalog collaborators."""

    @classmethod
    def missing_collaborators(
        cls, provider_name: str
    ) -> EventHandlingMisconfiguredError:
        """Create error for a provider built without catalog API or tokens."""
        return cls(
            f"{provider_name} not well configured to handle repo:push. "
            "Missing CatalogApi and/or TokenManager."
        )


class DeltaRefreshError(ProviderError):
    """Raised when one or more catalog calls of a delta refresh fail.

    Every call is awaited before this is raised. The first failure is chained
    as ``__cause__``.

    Attributes
    ----------
    exceptions
        The failures in submission order.

    """

    exceptions: tuple[Exception, ...]

    def __init__(self, exceptions: cabc.Sequence[Exception]) -> None:
        """Initialise with the failures collected from the delta refresh."""
        self.exceptions = tuple(exceptions)
        count = len(self.exceptions)
        super().__init__(f"Delta refresh failed: {count} catalog call(s) failed")
