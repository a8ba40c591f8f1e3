"""Unit tests for the catalog REST client."""

from __future__ import annotations

import json
import secrets

import httpx
import msgspec
import pytest

from cairn.catalog import CatalogAPIError, CatalogClient, CatalogClientConfig
from cairn.provider import existing_locations_filter
from tests.helpers.fakes import file_url_for, location_for, repo_url

_BASE = "https://catalog.example.test/api/catalog/"
_TOKEN = secrets.token_hex(8)


def _make_client(
    status: int, payload: object
) -> tuple[CatalogClient, httpx.AsyncClient, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if isinstance(payload, bytes):
            return httpx.Response(status_code=status, content=payload)
        return httpx.Response(status_code=status, json=payload)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(_handler))
    client = CatalogClient(CatalogClientConfig(base_url=_BASE), http_client=http_client)
    return client, http_client, requests


@pytest.mark.asyncio
async def test_get_entities_sends_filter_and_token() -> None:
    """Entity queries encode the field filter and carry a bearer token."""
    location = location_for(file_url_for("api"), repo_url("api"))
    client, http_client, requests = _make_client(
        200, msgspec.to_builtins([location])
    )

    entities = await client.get_entities(
        filter=existing_locations_filter(repo_url("api")), token=_TOKEN
    )
    await http_client.aclose()

    assert entities == [location]
    request = requests[0]
    assert request.url.path == "/api/catalog/entities"
    assert request.url.params["filter"] == (
        "kind=Location,metadata.annotations.bitbucket.org/repo-url="
        + repo_url("api")
    )
    assert request.headers["Authorization"] == f"Bearer {_TOKEN}"


@pytest.mark.asyncio
async def test_refresh_entity_posts_entity_ref() -> None:
    """Refresh requests name the entity in the JSON body."""
    client, http_client, requests = _make_client(200, {})

    await client.refresh_entity("location:default/generated-abc", token=_TOKEN)
    await http_client.aclose()

    request = requests[0]
    assert request.method == "POST"
    assert request.url.path == "/api/catalog/refresh"
    assert json.loads(request.content) == {
        "entityRef": "location:default/generated-abc"
    }


@pytest.mark.asyncio
async def test_requests_without_token_are_anonymous() -> None:
    """No authorization header is sent without a token."""
    client, http_client, requests = _make_client(200, [])

    assert await client.get_entities(filter={"kind": "Location"}) == []
    await http_client.aclose()

    assert "Authorization" not in requests[0].headers


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [404, 500])
async def test_http_errors_raise(status: int) -> None:
    """HTTP errors raise ``CatalogAPIError`` with the status code."""
    client, http_client, _ = _make_client(status, {})

    with pytest.raises(CatalogAPIError) as excinfo:
        await client.refresh_entity("location:default/x")
    await http_client.aclose()

    assert excinfo.value.status_code == status


@pytest.mark.asyncio
async def test_undecodable_entities_raise() -> None:
    """Entity lists that do not decode raise ``CatalogAPIError``."""
    client, http_client, _ = _make_client(200, {"items": "nope"})

    with pytest.raises(CatalogAPIError):
        await client.get_entities(filter={"kind": "Location"})
    await http_client.aclose()


def _unreachable_client(error: type[httpx.TransportError]) -> CatalogClient:
    def _handler(request: httpx.Request) -> httpx.Response:
        raise error("catalog unreachable", request=request)

    return CatalogClient(
        CatalogClientConfig(base_url=_BASE),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(_handler)),
    )


@pytest.mark.asyncio
async def test_get_entities_connection_failure_raises_api_error() -> None:
    """A refused connection surfaces as a transient catalog error."""
    client = _unreachable_client(httpx.ConnectError)

    with pytest.raises(CatalogAPIError, match="entity query network error") as exc:
        await client.get_entities(filter={"kind": "Location"}, token=_TOKEN)

    assert exc.value.status_code is None
    assert exc.value.transient is True


@pytest.mark.asyncio
async def test_refresh_timeout_raises_api_error() -> None:
    """A timed-out refresh surfaces as a transient catalog error."""
    client = _unreachable_client(httpx.ReadTimeout)

    with pytest.raises(CatalogAPIError, match="refresh timed out") as exc:
        await client.refresh_entity("location:default/x", token=_TOKEN)

    assert exc.value.transient is True
    assert isinstance(exc.value.__cause__, httpx.ReadTimeout)
