"""Fixtures shared by provider unit tests."""

from __future__ import annotations

import re

import pytest

from cairn.provider import BitbucketCloudEntityProvider, ProviderFilters
from cairn.provider.config import BitbucketCloudProviderConfig
from tests.helpers.fakes import (
    WORKSPACE,
    FakeCatalogApi,
    FakeSearchClient,
    RecordingConnection,
    RecordingTaskRunner,
    StaticTokenManager,
)


@pytest.fixture
def provider_config() -> BitbucketCloudProviderConfig:
    """Provider restricted to ``PLAT`` project repositories."""
    return BitbucketCloudProviderConfig(
        id="default",
        workspace=WORKSPACE,
        filters=ProviderFilters(project_key=re.compile("^PLAT$")),
    )


@pytest.fixture
def search_client() -> FakeSearchClient:
    """Search client with no hits; tests assign ``hits``."""
    return FakeSearchClient()


@pytest.fixture
def catalog_api() -> FakeCatalogApi:
    """Catalog API with no entities; tests assign ``entities``."""
    return FakeCatalogApi()


@pytest.fixture
def token_manager() -> StaticTokenManager:
    """Token manager issuing a fixed token."""
    return StaticTokenManager()


@pytest.fixture
def connection() -> RecordingConnection:
    """Connection recording applied mutations."""
    return RecordingConnection()


@pytest.fixture
def task_runner() -> RecordingTaskRunner:
    """Runner recording scheduled tasks."""
    return RecordingTaskRunner()


@pytest.fixture
def provider(
    provider_config: BitbucketCloudProviderConfig,
    search_client: FakeSearchClient,
    catalog_api: FakeCatalogApi,
    token_manager: StaticTokenManager,
    task_runner: RecordingTaskRunner,
) -> BitbucketCloudEntityProvider:
    """Provider wired to in-memory collaborators but not yet connected."""
    return BitbucketCloudEntityProvider(
        provider_config,
        client=search_client,
        task_runner=task_runner,
        catalog_api=catalog_api,
        token_manager=token_manager,
    )
