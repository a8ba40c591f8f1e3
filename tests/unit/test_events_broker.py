"""Unit tests for the in-process event broker."""

from __future__ import annotations

import pytest

from cairn.events import EventBroker, EventParams


class _Subscriber:
    def __init__(
        self, topics: list[str], log: list[str], *, error: Exception | None = None
    ) -> None:
        self.topics = topics
        self.log = log
        self.error = error

    def supports_event_topics(self) -> list[str]:
        return self.topics

    async def on_event(self, params: EventParams) -> None:
        self.log.append(f"{id(self)}:{params.topic}")
        if self.error is not None:
            raise self.error


@pytest.mark.asyncio
async def test_publish_reaches_topic_subscribers_in_order() -> None:
    """Only subscribers of the topic receive the event, in order."""
    log: list[str] = []
    first = _Subscriber(["a/push"], log)
    second = _Subscriber(["a/push", "a/other"], log)
    unrelated = _Subscriber(["b/push"], log)
    broker = EventBroker()
    broker.subscribe(first, second, unrelated)

    delivered = await broker.publish(EventParams(topic="a/push", event_payload={}))

    assert delivered == 2
    assert log == [f"{id(first)}:a/push", f"{id(second)}:a/push"]
    assert broker.topics() == ["a/other", "a/push", "b/push"]


@pytest.mark.asyncio
async def test_publish_without_subscribers() -> None:
    """Events nobody subscribed to are dropped."""
    assert await EventBroker().publish(EventParams("x", {})) == 0


@pytest.mark.asyncio
async def test_publish_propagates_subscriber_errors() -> None:
    """A failing subscriber stops delivery and reaches the publisher."""
    log: list[str] = []
    error = RuntimeError("boom")
    broker = EventBroker()
    broker.subscribe(_Subscriber(["t"], log, error=error), _Subscriber(["t"], log))

    with pytest.raises(RuntimeError) as excinfo:
        await broker.publish(EventParams(topic="t", event_payload={}))

    assert excinfo.value is error
    assert len(log) == 1


def test_event_key_reads_metadata() -> None:
    """The webhook event key is exposed from metadata."""
    params = EventParams("t", {}, {"x-event-key": "repo:push"})

    assert params.event_key == "repo:push"
    assert EventParams("t", {}).event_key is None
