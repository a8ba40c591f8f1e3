"""Bitbucket Cloud entity provider.

The provider keeps the catalog's Location entities in step with the catalog
files found in one Bitbucket Cloud workspace. A scheduled full refresh
replaces every Location the provider owns; ``repo:push`` events trigger a
delta refresh limited to the pushed repository.

Usage
-----
Build providers from the application configuration and connect them::

    scheduler = AsyncioTaskScheduler()
    providers = BitbucketCloudEntityProvider.from_config(
        load_app_config("app-config.yaml"),
        catalog_api=CatalogClient(CatalogClientConfig(base_url=catalog_url)),
        token_manager=tokens,
        scheduler=scheduler,
        events=broker,
    )
    for provider in providers:
        await provider.connect(connection)

"""

from __future__ import annotations

import collections.abc as cabc
import time
import typing as typ
import uuid

from cairn.bitbucket import BITBUCKET_CLOUD_HOST, BitbucketCloudClient
from cairn.bitbucket.models import decode_push_event
from cairn.catalog.models import DeferredEntity, DeltaMutation, FullMutation, entity_ref
from cairn.logging import format_fields, get_logger, log_info
from cairn.scheduling import TaskInvocation

from .config import (
    integration_for_host,
    read_integration_configs,
    read_provider_configs,
)
from .entities import ANNOTATION_REPO_URL, IngestionTarget, to_deferred_entities
from .errors import (
    DeltaRefreshError,
    EventHandlingMisconfiguredError,
    NotInitializedError,
    ProviderConfigurationError,
)
from .filters import matches_filters
from .gateway import CatalogCall, MutationGateway
from .observability import ProviderEventLogger
from .scanner import CatalogFileScanner

if typ.TYPE_CHECKING:
    from cairn.bitbucket import BitbucketCloudConfig, CodeSearchClient, RepoPushEvent
    from cairn.catalog.models import LocationEntity
    from cairn.catalog.protocols import (
        CatalogApi,
        EntityProviderConnection,
        TokenManager,
    )
    from cairn.events.broker import EventBroker
    from cairn.events.models import EventParams
    from cairn.scheduling import TaskRunner, TaskScheduler

    from .config import BitbucketCloudProviderConfig

logger = get_logger(__name__)

SERVICE_ID = "bitbucketCloud"
TOPIC_REPO_PUSH = f"{SERVICE_ID}/repo:push"
EVENT_KEY_REPO_PUSH = "repo:push"


class BitbucketCloudEntityProvider:
    """Discover catalog files in Bitbucket Cloud and own their Locations.

    Parameters
    ----------
    config
        Settings of this provider instance.
    client
        Code search client for the workspace's host.
    task_runner
        Runner that receives the scheduled full refresh on :meth:`connect`.
    catalog_api
        Catalog query and refresh API; required for push events.
    token_manager
        Issuer of tokens for ``catalog_api`` calls; required for push events.
    gateway
        Limiter for delta refresh catalog calls.

    """

    def __init__(  # noqa: PLR0913
        self,
        config: BitbucketCloudProviderConfig,
        *,
        client: CodeSearchClient,
        task_runner: TaskRunner,
        catalog_api: CatalogApi | None = None,
        token_manager: TokenManager | None = None,
        gateway: MutationGateway | None = None,
    ) -> None:
        """Initialise the provider; it stays inert until connected."""
        self._config = config
        self._client = client
        self._task_runner = task_runner
        self._catalog_api = catalog_api
        self._token_manager = token_manager
        self._gateway = gateway or MutationGateway()
        self._scanner = CatalogFileScanner(client, config.filters)
        self._events = ProviderEventLogger(self.provider_name)
        self._connection: EntityProviderConnection | None = None
        self._event_config_error_raised = False

    @classmethod
    def from_config(  # noqa: PLR0913
        cls,
        config: cabc.Mapping[str, typ.Any],
        *,
        catalog_api: CatalogApi | None = None,
        token_manager: TokenManager | None = None,
        schedule: TaskRunner | None = None,
        scheduler: TaskScheduler | None = None,
        client: CodeSearchClient | None = None,
        integrations: cabc.Sequence[BitbucketCloudConfig] | None = None,
        events: EventBroker | None = None,
    ) -> list[BitbucketCloudEntityProvider]:
        """Create one provider per configured provider id.

        Parameters
        ----------
        config
            Loaded application configuration.
        catalog_api, token_manager
            Catalog collaborators enabling push event handling.
        schedule
            Runner shared by every provider; takes precedence over
            ``scheduler``.
        scheduler
            Factory for a runner per provider from its configured schedule.
        client
            Search client shared by every provider. By default each provider
            gets its own client for the ``bitbucket.org`` integration.
        integrations
            Integrations to use instead of those in ``config``.
        events
            Broker the providers subscribe to for push events.

        Raises
        ------
        ProviderConfigurationError
            If no ``bitbucket.org`` integration exists, if neither ``schedule``
            nor ``scheduler`` is given, or if a provider has no schedule.
        ConfigValidationError
            If the configuration document is invalid.

        """
        available = (
            read_integration_configs(config) if integrations is None else integrations
        )
        integration = integration_for_host(available, BITBUCKET_CLOUD_HOST)
        if integration is None:
            raise ProviderConfigurationError.no_integration(BITBUCKET_CLOUD_HOST)

        if schedule is None and scheduler is None:
            raise ProviderConfigurationError.no_task_runner()

        providers: list[BitbucketCloudEntityProvider] = []
        for provider_config in read_provider_configs(config):
            if schedule is not None:
                task_runner = schedule
            elif provider_config.schedule is not None and scheduler is not None:
                task_runner = scheduler.create_scheduled_task_runner(
                    provider_config.schedule
                )
            else:
                raise ProviderConfigurationError.no_schedule(
                    provider_name_for(provider_config.id)
                )

            providers.append(
                cls(
                    provider_config,
                    client=client or BitbucketCloudClient(integration),
                    task_runner=task_runner,
                    catalog_api=catalog_api,
                    token_manager=token_manager,
                )
            )

        if events is not None:
            events.subscribe(*providers)
        return providers

    @property
    def config(self) -> BitbucketCloudProviderConfig:
        """Return the provider settings."""
        return self._config

    @property
    def provider_name(self) -> str:
        """Return the unique name, also used as the ownership key."""
        return provider_name_for(self._config.id)

    def get_provider_name(self) -> str:
        """Return :attr:`provider_name`."""
        return self.provider_name

    @property
    def task_id(self) -> str:
        """Return the id of the scheduled refresh task."""
        return f"{self.provider_name}:refresh"

    async def connect(self, connection: EntityProviderConnection) -> None:
        """Store ``connection`` and register the scheduled full refresh."""
        self._connection = connection
        await self._task_runner.run(
            TaskInvocation(id=self.task_id, fn=self._scheduled_refresh)
        )

    async def aclose(self) -> None:
        """Close the search client when it supports closing."""
        close = getattr(self._client, "aclose", None)
        if close is not None:
            await close()

    async def _scheduled_refresh(self) -> None:
        task_instance_id = str(uuid.uuid4())
        try:
            await self.refresh(task_instance_id=task_instance_id)
        except Exception as exc:  # noqa: BLE001
            self._events.refresh_failed(self.task_id, task_instance_id, exc)

    async def refresh(self, *, task_instance_id: str | None = None) -> int:
        """Replace every Location this provider owns with a fresh scan.

        Returns
        -------
        int
            Number of Location entities committed.

        Raises
        ------
        NotInitializedError
            If the provider has not been connected.

        """
        connection = self._require_connection()
        self._events.refresh_started(task_instance_id)
        started = time.monotonic()

        targets = unique_targets(
            [target async for target in self._find_catalog_files()]
        )
        entities = to_deferred_entities(targets, self.provider_name)
        await connection.apply_mutation(FullMutation(entities=tuple(entities)))

        log_info(
            logger,
            "Committed %d Locations for catalog files in Bitbucket Cloud "
            "repositories %s",
            len(entities),
            format_fields(provider=self.provider_name),
        )
        self._events.refresh_completed(
            task_instance_id, len(entities), time.monotonic() - started
        )
        return len(entities)

    def supports_event_topics(self) -> list[str]:
        """Return the push topic this provider subscribes to."""
        return [TOPIC_REPO_PUSH]

    async def on_event(self, params: EventParams) -> None:
        """Run a delta refresh for ``repo:push`` events on the push topic."""
        if params.topic != TOPIC_REPO_PUSH:
            return
        if params.event_key != EVENT_KEY_REPO_PUSH:
            return
        await self.on_repo_push(decode_push_event(params.event_payload))

    def _can_handle_events(self) -> bool:
        if self._catalog_api is not None and self._token_manager is not None:
            return True

        if not self._event_config_error_raised:
            self._event_config_error_raised = True
            raise EventHandlingMisconfiguredError.missing_collaborators(
                self.provider_name
            )
        return False

    async def on_repo_push(self, event: RepoPushEvent) -> None:
        """Reconcile the Locations of the pushed repository.

        Newly found catalog files are added, vanished ones removed, and the
        Locations that remain are refreshed so the catalog re-reads their
        contents.

        Raises
        ------
        EventHandlingMisconfiguredError
            The first time an event arrives without catalog collaborators.
            Later events are ignored silently.
        NotInitializedError
            If the provider has not been connected.
        DeltaRefreshError
            If any catalog call failed; all calls are awaited first.

        """
        if not self._can_handle_events():
            return
        connection = self._require_connection()
        # Guaranteed by _can_handle_events.
        catalog_api = typ.cast("CatalogApi", self._catalog_api)
        token_manager = typ.cast("TokenManager", self._token_manager)

        repository = event.repository
        if repository.workspace.slug != self._config.workspace:
            self._events.delta_ignored(repository.slug, "workspace")
            return
        if not matches_filters(self._config.filters, repository):
            self._events.delta_ignored(repository.slug, "filtered")
            return

        repo_url = repository.web_url
        self._events.delta_started(repo_url)

        targets = [
            target async for target in self._find_catalog_files(repository.slug)
        ]
        token = await token_manager.get_token()
        existing = await catalog_api.get_entities(
            filter=existing_locations_filter(repo_url), token=token
        )

        diff = diff_locations(existing, targets, self.provider_name)
        calls: list[CatalogCall] = [
            _refresh_call(catalog_api, entity_ref(entity), token)
            for entity in diff.still_present
        ]
        if diff.added or diff.removed:
            mutation = DeltaMutation(added=diff.added, removed=diff.removed)
            calls.append(lambda: connection.apply_mutation(mutation))

        _raise_for_failures(await self._gateway.run_all(calls))
        self._events.delta_completed(
            repo_url,
            added=len(diff.added),
            removed=len(diff.removed),
            refreshed=len(diff.still_present),
        )

    def _require_connection(self) -> EntityProviderConnection:
        if self._connection is None:
            raise NotInitializedError.for_provider(self.provider_name)
        return self._connection

    def _find_catalog_files(
        self, repo_slug: str | None = None
    ) -> cabc.AsyncIterator[IngestionTarget]:
        return self._scanner.scan(
            self._config.workspace, self._config.catalog_path, repo_slug
        )


class LocationDiff(typ.NamedTuple):
    """Outcome of comparing owned Locations with discovered files."""

    added: tuple[DeferredEntity, ...]
    removed: tuple[DeferredEntity, ...]
    still_present: tuple[LocationEntity, ...]


def provider_name_for(provider_id: str) -> str:
    """Return the provider name for a configured provider id."""
    return f"{SERVICE_ID}-provider:{provider_id}"


def existing_locations_filter(repo_url: str) -> dict[str, str]:
    """Return the catalog filter for Locations discovered in ``repo_url``."""
    return {
        "kind": "Location",
        f"metadata.annotations.{ANNOTATION_REPO_URL}": repo_url,
    }


def unique_targets(
    targets: cabc.Iterable[IngestionTarget],
) -> list[IngestionTarget]:
    """Return ``targets`` keeping the first target per file URL."""
    unique: dict[str, IngestionTarget] = {}
    for target in targets:
        unique.setdefault(target.file_url, target)
    return list(unique.values())


def diff_locations(
    existing: cabc.Iterable[LocationEntity],
    targets: cabc.Iterable[IngestionTarget],
    provider_name: str,
) -> LocationDiff:
    """Compare owned Locations with discovered targets by target URL.

    Locations without a target never match a discovered file and are
    removed. Repeated targets count once.
    """
    targets = unique_targets(targets)
    existing = list(existing)
    found_urls = {target.file_url for target in targets}
    existing_urls = {entity.target for entity in existing if entity.target}

    added = to_deferred_entities(
        (target for target in targets if target.file_url not in existing_urls),
        provider_name,
    )
    removed: list[DeferredEntity] = []
    still_present: list[LocationEntity] = []
    for entity in existing:
        if entity.target in found_urls:
            still_present.append(entity)
        else:
            removed.append(DeferredEntity(entity=entity, location_key=provider_name))

    return LocationDiff(
        added=tuple(added), removed=tuple(removed), still_present=tuple(still_present)
    )


def _refresh_call(catalog_api: CatalogApi, ref: str, token: str) -> CatalogCall:
    async def _call() -> None:
        await catalog_api.refresh_entity(ref, token=token)

    return _call


def _raise_for_failures(outcomes: cabc.Iterable[BaseException | None]) -> None:
    """Raise :class:`DeltaRefreshError` if any catalog call failed.

    Raises
    ------
    BaseException
        Re-raised immediately for system-level exceptions.
    DeltaRefreshError
        Wraps every failed call, chaining the first one.

    """
    failures: list[Exception] = []
    for outcome in outcomes:
        if isinstance(outcome, Exception):
            failures.append(outcome)
        elif outcome is not None:
            raise outcome

    if failures:
        raise DeltaRefreshError(failures) from failures[0]
