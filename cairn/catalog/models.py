"""Catalog entity and mutation structures.

Location entities are the only kind this project produces. Their shape
follows the catalog's ``backstage.io/v1alpha1`` envelope so they can be
exchanged with the catalog REST API unchanged.
"""

from __future__ import annotations

import dataclasses
import hashlib
import typing as typ

import msgspec

LOCATION_API_VERSION = "backstage.io/v1alpha1"
LOCATION_KIND = "Location"
DEFAULT_NAMESPACE = "default"
ANNOTATION_LOCATION = "backstage.io/managed-by-location"
ANNOTATION_ORIGIN_LOCATION = "backstage.io/managed-by-origin-location"


class LocationSpec(msgspec.Struct, kw_only=True, omit_defaults=True):
    """Where a location points and whether the target must exist.

    Attributes
    ----------
    target : str, optional
        URL of the catalog file. Locations managed by this project always
        carry a single target.
    type : str
        Location type; discovered files are always ``url`` locations.
    presence : Literal["required", "optional"]
        Whether a missing target is an error for the catalog.

    """

    target: str | None = None
    type: str = "url"
    presence: typ.Literal["required", "optional"] = "required"

    @property
    def location_ref(self) -> str:
        """Return the ``type:target`` reference string."""
        return f"{self.type}:{self.target}"


class EntityMetadata(msgspec.Struct, kw_only=True, omit_defaults=True):
    """Entity metadata subset relevant to Location entities."""

    name: str
    namespace: str | None = None
    annotations: dict[str, str] = msgspec.field(default_factory=dict)


class LocationEntity(
    msgspec.Struct,
    kw_only=True,
    rename={"api_version": "apiVersion"},
):
    """A ``Location`` catalog entity."""

    metadata: EntityMetadata
    spec: LocationSpec
    api_version: str = LOCATION_API_VERSION
    kind: str = LOCATION_KIND

    @property
    def target(self) -> str | None:
        """Return the location target URL."""
        return self.spec.target


def location_metadata_name(spec: LocationSpec) -> str:
    """Return the deterministic entity name generated for ``spec``.

    Examples
    --------
    >>> location_metadata_name(LocationSpec(target="https://e.test/x.yaml"))[:10]
    'generated-'

    """
    digest = hashlib.sha1(
        spec.location_ref.encode("utf-8"), usedforsecurity=False
    ).hexdigest()
    return f"generated-{digest}"


def location_entity_from_spec(spec: LocationSpec) -> LocationEntity:
    """Build a root Location entity for ``spec``.

    Both managed-by annotations point at the location itself because the
    entity is emitted directly by a provider rather than by a parent.
    """
    ref = spec.location_ref
    return LocationEntity(
        metadata=EntityMetadata(
            name=location_metadata_name(spec),
            annotations={
                ANNOTATION_LOCATION: ref,
                ANNOTATION_ORIGIN_LOCATION: ref,
            },
        ),
        spec=spec,
    )


def entity_ref(entity: LocationEntity) -> str:
    """Return the ``kind:namespace/name`` reference for ``entity``."""
    namespace = entity.metadata.namespace or DEFAULT_NAMESPACE
    return f"{entity.kind.lower()}:{namespace}/{entity.metadata.name}"


@dataclasses.dataclass(frozen=True, slots=True)
class DeferredEntity:
    """An entity paired with the ownership key of the provider emitting it."""

    entity: LocationEntity
    location_key: str


@dataclasses.dataclass(frozen=True, slots=True)
class FullMutation:
    """Replace everything owned by a provider with ``entities``."""

    entities: tuple[DeferredEntity, ...]
    type: typ.Literal["full"] = "full"


@dataclasses.dataclass(frozen=True, slots=True)
class DeltaMutation:
    """Add and remove entities relative to a provider's current set."""

    added: tuple[DeferredEntity, ...]
    removed: tuple[DeferredEntity, ...]
    type: typ.Literal["delta"] = "delta"


type EntityMutation = FullMutation | DeltaMutation
