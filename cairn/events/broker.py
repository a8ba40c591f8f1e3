"""In-process topic fan-out for event subscribers."""

from __future__ import annotations

import collections
import typing as typ

from cairn.logging import format_fields, get_logger, log_debug

if typ.TYPE_CHECKING:
    from .models import EventParams, EventSubscriber

logger = get_logger(__name__)


class EventBroker:
    """Deliver published events to the subscribers of their topic.

    Subscribers are awaited one after another in registration order. A
    failing subscriber aborts delivery and the error reaches the publisher,
    which owns retry and acknowledgement decisions.
    """

    def __init__(self) -> None:
        """Initialise with no subscriptions."""
        self._subscribers: dict[str, list[EventSubscriber]] = collections.defaultdict(
            list
        )

    def subscribe(self, *subscribers: EventSubscriber) -> None:
        """Register ``subscribers`` for every topic they support."""
        for subscriber in subscribers:
            for topic in subscriber.supports_event_topics():
                self._subscribers[topic].append(subscriber)

    def topics(self) -> list[str]:
        """Return the topics that have at least one subscriber."""
        return sorted(topic for topic, subs in self._subscribers.items() if subs)

    async def publish(self, params: EventParams) -> int:
        """Deliver ``params`` and return how many subscribers received it."""
        subscribers = list(self._subscribers.get(params.topic, ()))
        log_debug(
            logger,
            "Publishing event %s",
            format_fields(topic=params.topic, subscribers=len(subscribers)),
        )
        for subscriber in subscribers:
            await subscriber.on_event(params)
        return len(subscribers)
