"""Conversion of discovered catalog files into provider-owned Location records."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses

import msgspec

from cairn.catalog.models import DeferredEntity, LocationSpec, location_entity_from_spec

ANNOTATION_REPO_URL = "bitbucket.org/repo-url"


@dataclasses.dataclass(frozen=True, slots=True)
class IngestionTarget:
    """A catalog file found upstream.

    Attributes
    ----------
    file_url
        Web URL of the file on the repository's default branch. Identity of
        the target.
    repo_url
        Web URL of the repository holding the file.

    """

    file_url: str
    repo_url: str


def to_deferred_entity(target: IngestionTarget, provider_name: str) -> DeferredEntity:
    """Return the Location record owned by ``provider_name`` for ``target``."""
    entity = location_entity_from_spec(
        LocationSpec(target=target.file_url, presence="required")
    )
    annotations = {**entity.metadata.annotations, ANNOTATION_REPO_URL: target.repo_url}
    entity = msgspec.structs.replace(
        entity,
        metadata=msgspec.structs.replace(entity.metadata, annotations=annotations),
    )
    return DeferredEntity(entity=entity, location_key=provider_name)


def to_deferred_entities(
    targets: cabc.Iterable[IngestionTarget], provider_name: str
) -> list[DeferredEntity]:
    """Materialise ``targets`` in order, one record per target."""
    return [to_deferred_entity(target, provider_name) for target in targets]
