"""Event envelope and subscriber contract."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import typing as typ

EVENT_KEY_METADATA = "x-event-key"


@dataclasses.dataclass(frozen=True, slots=True)
class EventParams:
    """An event delivered on ``topic``.

    Attributes
    ----------
    topic
        Topic name, ``<service>/<event key>`` for webhook-sourced events.
    event_payload
        Decoded JSON body of the event.
    metadata
        Delivery metadata such as the webhook's ``x-event-key`` header.

    """

    topic: str
    event_payload: object
    metadata: cabc.Mapping[str, str] = dataclasses.field(default_factory=dict)

    @property
    def event_key(self) -> str | None:
        """Return the ``x-event-key`` metadata value, if present."""
        return self.metadata.get(EVENT_KEY_METADATA)


class EventSubscriber(typ.Protocol):
    """Consumer of events published on a fixed set of topics."""

    def supports_event_topics(self) -> list[str]:
        """Return the topics this subscriber wants to receive."""
        ...

    async def on_event(self, params: EventParams) -> None:
        """Handle one event."""
        ...
