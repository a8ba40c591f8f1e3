"""Catalog client errors."""

from __future__ import annotations


class CatalogAPIError(RuntimeError):
    """Raised when a catalog REST call fails or returns an error response."""

    def __init__(
        self, message: str, *, status_code: int | None = None, transient: bool = False
    ) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        self.transient = transient
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int, operation: str) -> CatalogAPIError:
        """Return an error for a non-2xx response to ``operation``."""
        return cls(
            f"Catalog {operation} failed with HTTP {status_code}",
            status_code=status_code,
        )

    @classmethod
    def timeout(cls, operation: str) -> CatalogAPIError:
        """Return an error for a call that timed out."""
        return cls(f"Catalog {operation} timed out", transient=True)

    @classmethod
    def network_error(cls, operation: str, detail: str) -> CatalogAPIError:
        """Return an error for connection, DNS or TLS failures."""
        return cls(f"Catalog {operation} network error: {detail}", transient=True)

    @classmethod
    def undecodable(cls, detail: object) -> CatalogAPIError:
        """Return an error for an entity list that failed to decode."""
        return cls(f"Catalog entities response could not be decoded: {detail}")
