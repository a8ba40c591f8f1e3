"""Run a one-off catalog file discovery and print the files found."""

from __future__ import annotations

import argparse
import asyncio
import collections.abc as cabc
import os
import typing as typ
from pathlib import Path

import msgspec

from cairn.bitbucket import (
    BITBUCKET_CLOUD_HOST,
    BitbucketAPIError,
    BitbucketCloudClient,
    BitbucketResponseShapeError,
)
from cairn.config import ConfigValidationError, load_app_config
from cairn.logging import configure_logging
from cairn.provider import (
    CatalogFileScanner,
    IngestionTarget,
    ProviderConfigurationError,
    provider_name_for,
    to_deferred_entities,
)
from cairn.provider.config import (
    integration_for_host,
    read_integration_configs,
    read_provider_configs,
)

if typ.TYPE_CHECKING:
    from cairn.bitbucket import CodeSearchClient

LOG_LEVEL_ENV = "CAIRN_LOG_LEVEL"


async def run_scan(
    config: cabc.Mapping[str, typ.Any],
    *,
    provider_ids: cabc.Collection[str] | None = None,
    client: CodeSearchClient | None = None,
) -> dict[str, list[IngestionTarget]]:
    """Scan the workspace of every selected provider.

    Parameters
    ----------
    config
        Loaded application configuration.
    provider_ids
        Ids of the providers to scan; all configured providers when ``None``.
    client
        Search client to use instead of one built from the integration.

    Returns
    -------
    dict[str, list[IngestionTarget]]
        Discovered files keyed by provider name, in configuration order.

    Raises
    ------
    ProviderConfigurationError
        If no integration is available or a requested provider id is unknown.

    """
    providers = read_provider_configs(config)
    if provider_ids is not None:
        unknown = set(provider_ids) - {provider.id for provider in providers}
        if unknown:
            msg = f"Unknown provider id(s): {', '.join(sorted(unknown))}"
            raise ProviderConfigurationError(msg)
        providers = [provider for provider in providers if provider.id in provider_ids]

    owned_client: BitbucketCloudClient | None = None
    if client is None:
        integration = integration_for_host(
            read_integration_configs(config), BITBUCKET_CLOUD_HOST
        )
        if integration is None:
            raise ProviderConfigurationError.no_integration(BITBUCKET_CLOUD_HOST)
        owned_client = BitbucketCloudClient(integration)
        client = owned_client

    results: dict[str, list[IngestionTarget]] = {}
    try:
        for provider in providers:
            scanner = CatalogFileScanner(client, provider.filters)
            results[provider_name_for(provider.id)] = [
                target
                async for target in scanner.scan(
                    provider.workspace, provider.catalog_path
                )
            ]
    finally:
        if owned_client is not None:
            await owned_client.aclose()
    return results


def main(argv: list[str] | None = None) -> int:
    """Discover catalog files for the configured providers.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 on success, 1 on configuration or upstream failure.

    """
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("config", type=Path, help="YAML application configuration")
    parser.add_argument(
        "--provider",
        action="append",
        dest="providers",
        default=None,
        help="Provider id to scan; repeat for several (default: all)",
    )
    parser.add_argument(
        "--json-out",
        type=Path,
        default=None,
        help="Optional path to write the Location entities as JSON",
    )
    args = parser.parse_args(argv)
    configure_logging(os.environ.get(LOG_LEVEL_ENV))

    try:
        config = load_app_config(args.config)
        results = asyncio.run(run_scan(config, provider_ids=args.providers))
    except ConfigValidationError as exc:
        print(f"Configuration {args.config} is invalid:")
        for issue in exc.issues:
            print(f"  - {issue}")
        return 1
    except ProviderConfigurationError as exc:
        print(f"Configuration {args.config} is unusable: {exc}")
        return 1
    except (BitbucketAPIError, BitbucketResponseShapeError) as exc:
        print(f"Discovery failed: {exc}")
        return 1

    entities = []
    for provider_name, targets in results.items():
        print(f"{provider_name}: {len(targets)} catalog file(s)")
        for target in targets:
            print(f"  {target.file_url}")
        entities.extend(
            deferred.entity
            for deferred in to_deferred_entities(targets, provider_name)
        )

    if args.json_out:
        args.json_out.write_bytes(msgspec.json.encode(entities))

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
