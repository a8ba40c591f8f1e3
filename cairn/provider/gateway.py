"""Bounded-concurrency execution of catalog calls."""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import typing as typ

MUTATION_CONCURRENCY_LIMIT = 10

type CatalogCall = cabc.Callable[[], cabc.Awaitable[None]]


class MutationGateway:
    """Run catalog calls with at most ``limit`` in flight.

    Calls are admitted in submission order. Every call is started and awaited
    even when a sibling fails; outcomes are returned so the caller decides how
    failures surface.
    """

    def __init__(self, limit: int = MUTATION_CONCURRENCY_LIMIT) -> None:
        """Initialise the gateway with a concurrency ``limit``."""
        if limit < 1:
            msg = "limit must be at least 1"
            raise ValueError(msg)
        self._limit = limit

    @property
    def limit(self) -> int:
        """Return the maximum number of concurrent calls."""
        return self._limit

    async def run_all(
        self, calls: cabc.Sequence[CatalogCall]
    ) -> list[BaseException | None]:
        """Run ``calls`` and return one outcome per call, ``None`` on success."""
        semaphore = asyncio.Semaphore(self._limit)

        async def _guarded(call: CatalogCall) -> None:
            async with semaphore:
                await call()

        results: list[typ.Any] = await asyncio.gather(
            *(_guarded(call) for call in calls), return_exceptions=True
        )
        return [
            result if isinstance(result, BaseException) else None
            for result in results
        ]
