"""Catalog-side entity models, collaborator interfaces and REST client.

Usage
-----
Build the Location entity for a discovered catalog file::

    from cairn.catalog import LocationSpec, location_entity_from_spec

    entity = location_entity_from_spec(
        LocationSpec(target="https://bitbucket.org/ws/repo/src/main/catalog-info.yaml")
    )

"""

from cairn.catalog.client import CatalogClient, CatalogClientConfig
from cairn.catalog.errors import CatalogAPIError
from cairn.catalog.models import (
    ANNOTATION_LOCATION,
    ANNOTATION_ORIGIN_LOCATION,
    DeferredEntity,
    DeltaMutation,
    EntityMetadata,
    EntityMutation,
    FullMutation,
    LocationEntity,
    LocationSpec,
    entity_ref,
    location_entity_from_spec,
)
from cairn.catalog.protocols import CatalogApi, EntityProviderConnection, TokenManager

__all__ = [
    "ANNOTATION_LOCATION",
    "ANNOTATION_ORIGIN_LOCATION",
    "CatalogAPIError",
    "CatalogApi",
    "CatalogClient",
    "CatalogClientConfig",
    "DeferredEntity",
    "DeltaMutation",
    "EntityMetadata",
    "EntityMutation",
    "EntityProviderConnection",
    "FullMutation",
    "LocationEntity",
    "LocationSpec",
    "TokenManager",
    "entity_ref",
    "location_entity_from_spec",
]
