"""Event contracts and in-process delivery."""

from cairn.events.broker import EventBroker
from cairn.events.models import EVENT_KEY_METADATA, EventParams, EventSubscriber

__all__ = ["EVENT_KEY_METADATA", "EventBroker", "EventParams", "EventSubscriber"]
