"""HTTP implementation of :class:`~cairn.catalog.protocols.CatalogApi`."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses

import httpx
import msgspec

from .errors import CatalogAPIError
from .models import LocationEntity

_HTTP_ERROR_STATUS_THRESHOLD = 400


@dataclasses.dataclass(frozen=True, slots=True)
class CatalogClientConfig:
    """Connection settings for the catalog REST API."""

    base_url: str
    timeout_s: float = 20.0
    user_agent: str = "cairn/0.1"


def _filter_param(filter: cabc.Mapping[str, str]) -> str:  # noqa: A002
    """Encode a field-path filter as the catalog's ``k=v,k=v`` syntax."""
    return ",".join(f"{key}={value}" for key, value in filter.items())


def _bearer(token: str | None) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"} if token else {}


class CatalogClient:
    """Query and refresh catalog entities over HTTP."""

    def __init__(
        self,
        config: CatalogClientConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client against ``config.base_url``."""
        self._config = config
        self._base_url = config.base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=config.timeout_s,
            headers={"User-Agent": config.user_agent, "Accept": "application/json"},
        )

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def get_entities(
        self,
        *,
        filter: cabc.Mapping[str, str],  # noqa: A002 - mirrors the catalog API
        token: str | None = None,
    ) -> list[LocationEntity]:
        """Return Location entities matching every ``filter`` field."""
        response = await self._send(
            "entity query",
            self._client.get(
                f"{self._base_url}/entities",
                params={"filter": _filter_param(filter)},
                headers=_bearer(token),
            ),
        )
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise CatalogAPIError.http_error(response.status_code, "entity query")
        try:
            return msgspec.json.decode(response.content, type=list[LocationEntity])
        except (msgspec.ValidationError, msgspec.DecodeError) as exc:
            raise CatalogAPIError.undecodable(exc) from exc

    async def refresh_entity(
        self, entity_ref: str, *, token: str | None = None
    ) -> None:
        """Ask the catalog to re-read the entity identified by ``entity_ref``."""
        response = await self._send(
            "refresh",
            self._client.post(
                f"{self._base_url}/refresh",
                json={"entityRef": entity_ref},
                headers=_bearer(token),
            ),
        )
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise CatalogAPIError.http_error(response.status_code, "refresh")

    async def _send(
        self, operation: str, request: cabc.Awaitable[httpx.Response]
    ) -> httpx.Response:
        try:
            return await request
        except httpx.TimeoutException as exc:
            raise CatalogAPIError.timeout(operation) from exc
        except httpx.RequestError as exc:
            raise CatalogAPIError.network_error(operation, str(exc)) from exc
