"""Interfaces of the catalog collaborators a provider talks to."""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

if typ.TYPE_CHECKING:
    from .models import EntityMutation, LocationEntity


class EntityProviderConnection(typ.Protocol):
    """Mutation channel handed to a provider when it is connected."""

    async def apply_mutation(self, mutation: EntityMutation) -> None:
        """Apply a full or delta mutation to the provider's owned entities."""
        ...


class CatalogApi(typ.Protocol):
    """Catalog read and refresh operations used during delta refresh."""

    async def get_entities(
        self, *, filter: cabc.Mapping[str, str], token: str | None = None
    ) -> list[LocationEntity]:
        """Return entities whose field paths equal the given values."""
        ...

    async def refresh_entity(
        self, entity_ref: str, *, token: str | None = None
    ) -> None:
        """Request that the catalog re-process one entity."""
        ...


class TokenManager(typ.Protocol):
    """Issuer of short-lived bearer tokens for catalog calls."""

    async def get_token(self) -> str:
        """Return a token valid for the next catalog request."""
        ...
