"""Bitbucket Cloud API client used for catalog file discovery."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import typing as typ

import httpx
import msgspec

from .errors import BitbucketAPIError, BitbucketConfigError, BitbucketResponseShapeError
from .models import CodeSearchResult, SearchResultPage

BITBUCKET_CLOUD_HOST = "bitbucket.org"
BITBUCKET_CLOUD_API_BASE_URL = "https://api.bitbucket.org/2.0"

_HTTP_ERROR_STATUS_THRESHOLD = 400


class CodeSearchClient(typ.Protocol):
    """Interface for searching code across a Bitbucket Cloud workspace."""

    def search_code(
        self, workspace: str, query: str, *, fields: str | None = None
    ) -> cabc.AsyncIterator[CodeSearchResult]:
        """Yield every search hit for ``query``, following pagination."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class BitbucketCloudConfig:
    """Integration settings for one Bitbucket Cloud host.

    Either ``username`` with ``app_password`` (HTTP Basic) or ``token``
    (Bearer) authenticates requests. With neither, requests are anonymous.
    """

    host: str = BITBUCKET_CLOUD_HOST
    api_base_url: str = BITBUCKET_CLOUD_API_BASE_URL
    username: str | None = None
    app_password: str | None = None
    token: str | None = None
    timeout_s: float = 30.0
    user_agent: str = "cairn/0.1"
    page_length: int = 100

    def __post_init__(self) -> None:
        """Reject half-configured or ambiguous credentials."""
        if bool(self.username) != bool(self.app_password):
            raise BitbucketConfigError.incomplete_basic_auth()
        if self.token and self.app_password:
            raise BitbucketConfigError.conflicting_auth()

    def auth(self) -> httpx.Auth | None:
        """Return HTTP Basic auth when username/app password are set."""
        if self.username and self.app_password:
            return httpx.BasicAuth(self.username, self.app_password)
        return None

    def headers(self) -> dict[str, str]:
        """Return default request headers, including any bearer token."""
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers


def _decode_page(response: httpx.Response) -> SearchResultPage:
    try:
        return msgspec.json.decode(response.content, type=SearchResultPage)
    except (msgspec.ValidationError, msgspec.DecodeError) as exc:
        raise BitbucketResponseShapeError.undecodable("search page", exc) from exc


class BitbucketCloudClient:
    """httpx implementation of :class:`CodeSearchClient`."""

    def __init__(
        self,
        config: BitbucketCloudConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client with the provided integration configuration."""
        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=config.timeout_s,
            headers=config.headers(),
            auth=config.auth(),
        )

    @property
    def config(self) -> BitbucketCloudConfig:
        """Return the integration configuration in use."""
        return self._config

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def search_code(
        self, workspace: str, query: str, *, fields: str | None = None
    ) -> typ.AsyncIterator[CodeSearchResult]:
        """Yield code search hits page by page in server order.

        The first request carries the query parameters; later requests follow
        the absolute ``next`` link, which already encodes them.
        """
        params: dict[str, str | int] = {
            "search_query": query,
            "pagelen": self._config.page_length,
        }
        if fields:
            params["fields"] = fields

        base_url = self._config.api_base_url.rstrip("/")
        url: str | None = f"{base_url}/workspaces/{workspace}/search/code"
        request_params: dict[str, str | int] | None = params
        while url is not None:
            page = await self._get_page(url, request_params)
            for result in page.values:
                yield result
            url = page.next
            request_params = None

    async def _get_page(
        self, url: str, params: dict[str, str | int] | None
    ) -> SearchResultPage:
        try:
            response = await self._client.get(url, params=params)
        except httpx.TimeoutException as exc:
            raise BitbucketAPIError.timeout(url) from exc
        except httpx.RequestError as exc:
            raise BitbucketAPIError.network_error(url, str(exc)) from exc
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise BitbucketAPIError.http_error(response.status_code, url)
        return _decode_page(response)
