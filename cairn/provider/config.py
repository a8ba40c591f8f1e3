"""Typed provider and integration configuration.

Provider settings live under ``catalog.providers.bitbucketCloud``. The
section is either a single provider (it has a ``workspace`` key and gets the
id ``default``) or a mapping of provider ids to provider settings::

    catalog:
      providers:
        bitbucketCloud:
          team-a:
            workspace: acme
            catalogPath: /catalog-info.yaml
            filters:
              projectKey: ^TEAM-A$
              repoSlug: ^service-
            schedule:
              frequency: { minutes: 30 }
              timeout: { minutes: 3 }

Credentials live under ``integrations.bitbucketCloud``. Bitbucket Cloud is only
served from ``bitbucket.org``, so entries carry no host; a ``host`` key is
ignored.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import datetime as dt
import re
import typing as typ

import msgspec

from cairn.bitbucket import BitbucketCloudConfig
from cairn.bitbucket.errors import BitbucketConfigError
from cairn.config import ConfigValidationError, config_section
from cairn.scheduling import ScheduleSpec

DEFAULT_CATALOG_PATH = "/catalog-info.yaml"
DEFAULT_PROVIDER_ID = "default"
PROVIDERS_SECTION = "catalog.providers.bitbucketCloud"
INTEGRATIONS_SECTION = "integrations.bitbucketCloud"


class _Duration(msgspec.Struct, kw_only=True, forbid_unknown_fields=True):
    days: float = 0
    hours: float = 0
    minutes: float = 0
    seconds: float = 0
    milliseconds: float = 0

    def to_timedelta(self) -> dt.timedelta:
        return dt.timedelta(
            days=self.days,
            hours=self.hours,
            minutes=self.minutes,
            seconds=self.seconds,
            milliseconds=self.milliseconds,
        )


class _RawSchedule(msgspec.Struct, kw_only=True, rename="camel"):
    frequency: _Duration
    timeout: _Duration
    initial_delay: _Duration | None = None


class _RawFilters(msgspec.Struct, kw_only=True, rename="camel"):
    project_key: str | None = None
    repo_slug: str | None = None


class _RawProviderConfig(msgspec.Struct, kw_only=True, rename="camel"):
    workspace: str
    catalog_path: str = DEFAULT_CATALOG_PATH
    filters: _RawFilters | None = None
    schedule: _RawSchedule | None = None


class _RawIntegration(msgspec.Struct, kw_only=True, rename="camel"):
    username: str | None = None
    app_password: str | None = None
    token: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class ProviderFilters:
    """Repository patterns a provider restricts discovery to.

    Patterns use search semantics: they match anywhere in the value unless
    anchored with ``^``/``$``.
    """

    project_key: re.Pattern[str] | None = None
    repo_slug: re.Pattern[str] | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class BitbucketCloudProviderConfig:
    """Settings for one provider instance."""

    id: str
    workspace: str
    catalog_path: str = DEFAULT_CATALOG_PATH
    filters: ProviderFilters | None = None
    schedule: ScheduleSpec | None = None


def _compile(pattern: str | None, *, field: str) -> re.Pattern[str] | None:
    if pattern is None:
        return None
    try:
        return re.compile(pattern)
    except re.error as exc:
        issue = f"{field}: invalid pattern {pattern!r}: {exc}"
        raise ConfigValidationError([issue]) from exc


def _build_schedule(raw: _RawSchedule | None) -> ScheduleSpec | None:
    if raw is None:
        return None
    return ScheduleSpec(
        frequency=raw.frequency.to_timedelta(),
        timeout=raw.timeout.to_timedelta(),
        initial_delay=raw.initial_delay.to_timedelta() if raw.initial_delay else None,
    )


def _read_provider_config(
    provider_id: str, raw: object
) -> BitbucketCloudProviderConfig:
    prefix = f"{PROVIDERS_SECTION}.{provider_id}"
    try:
        parsed = msgspec.convert(raw, type=_RawProviderConfig)
    except msgspec.ValidationError as exc:
        raise ConfigValidationError([f"{prefix}: {exc}"]) from exc

    filters = None
    if parsed.filters is not None:
        filters = ProviderFilters(
            project_key=_compile(
                parsed.filters.project_key, field=f"{prefix}.filters.projectKey"
            ),
            repo_slug=_compile(
                parsed.filters.repo_slug, field=f"{prefix}.filters.repoSlug"
            ),
        )

    return BitbucketCloudProviderConfig(
        id=provider_id,
        workspace=parsed.workspace,
        catalog_path=parsed.catalog_path,
        filters=filters,
        schedule=_build_schedule(parsed.schedule),
    )


def read_provider_configs(
    config: cabc.Mapping[str, typ.Any],
) -> list[BitbucketCloudProviderConfig]:
    """Return every provider configured in ``config``.

    Raises
    ------
    ConfigValidationError
        If a provider entry is malformed or has an invalid filter pattern.

    """
    section = config_section(config, PROVIDERS_SECTION)
    if section is None:
        return []
    if not isinstance(section, cabc.Mapping):
        raise ConfigValidationError([f"{PROVIDERS_SECTION} must be a mapping"])

    if "workspace" in section:
        return [_read_provider_config(DEFAULT_PROVIDER_ID, section)]

    return [
        _read_provider_config(str(provider_id), raw)
        for provider_id, raw in section.items()
    ]


def read_integration_configs(
    config: cabc.Mapping[str, typ.Any],
) -> list[BitbucketCloudConfig]:
    """Return the configured Bitbucket Cloud integrations.

    Every entry is an integration for ``bitbucket.org``. An anonymous one is
    returned when none are configured.
    """
    section = config_section(config, INTEGRATIONS_SECTION)
    if section is None:
        return [BitbucketCloudConfig()]

    try:
        raw_integrations = msgspec.convert(section, type=list[_RawIntegration])
    except msgspec.ValidationError as exc:
        raise ConfigValidationError([f"{INTEGRATIONS_SECTION}: {exc}"]) from exc

    integrations: list[BitbucketCloudConfig] = []
    for index, raw in enumerate(raw_integrations):
        try:
            integrations.append(
                BitbucketCloudConfig(
                    username=raw.username,
                    app_password=raw.app_password,
                    token=raw.token,
                )
            )
        except BitbucketConfigError as exc:
            issue = f"{INTEGRATIONS_SECTION}[{index}]: {exc}"
            raise ConfigValidationError([issue]) from exc
    return integrations or [BitbucketCloudConfig()]


def integration_for_host(
    integrations: cabc.Iterable[BitbucketCloudConfig], host: str
) -> BitbucketCloudConfig | None:
    """Return the integration configured for ``host``, if any."""
    return next((item for item in integrations if item.host == host), None)
