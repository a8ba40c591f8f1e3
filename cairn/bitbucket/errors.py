"""Bitbucket Cloud client errors."""

from __future__ import annotations


class BitbucketAPIError(RuntimeError):
    """Raised when a Bitbucket Cloud request fails.

    ``status_code`` is ``None`` when no response arrived; such failures are
    flagged ``transient``.
    """

    def __init__(
        self, message: str, *, status_code: int | None = None, transient: bool = False
    ) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        self.transient = transient
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int, url: str) -> BitbucketAPIError:
        """Return an error for non-2xx HTTP responses."""
        return cls(
            f"Bitbucket Cloud HTTP {status_code} for {url}", status_code=status_code
        )

    @classmethod
    def timeout(cls, url: str) -> BitbucketAPIError:
        """Return an error for a request that timed out."""
        return cls(f"Bitbucket Cloud request timed out for {url}", transient=True)

    @classmethod
    def network_error(cls, url: str, detail: str) -> BitbucketAPIError:
        """Return an error for connection, DNS or TLS failures."""
        return cls(
            f"Bitbucket Cloud network error for {url}: {detail}", transient=True
        )


class BitbucketResponseShapeError(RuntimeError):
    """Raised when a Bitbucket Cloud payload does not match the expected shape."""

    @classmethod
    def missing(cls, field: str) -> BitbucketResponseShapeError:
        """Return an error for a missing payload field."""
        return cls(f"Bitbucket Cloud payload missing expected field: {field}")

    @classmethod
    def undecodable(cls, what: str, detail: object) -> BitbucketResponseShapeError:
        """Return an error for a payload that failed typed decoding."""
        return cls(f"Bitbucket Cloud {what} could not be decoded: {detail}")


class BitbucketConfigError(RuntimeError):
    """Raised when Bitbucket Cloud client configuration is invalid."""

    @classmethod
    def incomplete_basic_auth(cls) -> BitbucketConfigError:
        """Return an error when only half of username/app password is set."""
        return cls("Bitbucket Cloud username and appPassword must be set together")

    @classmethod
    def conflicting_auth(cls) -> BitbucketConfigError:
        """Return an error when both a token and an app password are set."""
        return cls(
            "Bitbucket Cloud integration accepts a token or an appPassword, not both"
        )
