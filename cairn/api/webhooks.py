"""Bitbucket Cloud webhook receiver.

Bitbucket Cloud names the event in the ``X-Event-Key`` header, e.g.
``repo:push``. Each delivery is published on ``bitbucketCloud/<event key>``
with the header value kept as ``x-event-key`` metadata. ``repo:push`` bodies
missing the repository fields handlers read are rejected before publishing,
since redelivering them can never succeed.
"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

import msgspec

from cairn.api.errors import InvalidDeliveryError
from cairn.bitbucket import BitbucketResponseShapeError, decode_push_event
from cairn.events.models import EVENT_KEY_METADATA, EventParams
from cairn.logging import format_fields, get_logger, log_info
from cairn.provider.engine import EVENT_KEY_REPO_PUSH

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from cairn.events.broker import EventBroker

__all__ = ["EVENT_KEY_HEADER", "TOPIC_PREFIX", "BitbucketCloudWebhookResource"]

EVENT_KEY_HEADER = "X-Event-Key"
TOPIC_PREFIX = "bitbucketCloud"

logger = get_logger(__name__)


class BitbucketCloudWebhookResource:
    """Publish Bitbucket Cloud webhook deliveries to an event broker.

    Failures raised by subscribers propagate, so the delivery is answered
    with a server error and Bitbucket Cloud may redeliver it.
    """

    def __init__(self, broker: EventBroker) -> None:
        """Initialise with the broker deliveries are published to."""
        self._broker = broker

    async def on_post(self, req: Request, resp: Response) -> None:
        """Handle POST deliveries.

        Raises
        ------
        InvalidDeliveryError
            If the event key header is missing, the body is not JSON, or a
            ``repo:push`` body lacks the repository fields handlers need.

        """
        event_key = req.get_header(EVENT_KEY_HEADER)
        if not event_key:
            raise InvalidDeliveryError.missing_header(EVENT_KEY_HEADER)

        body = await req.stream.read()
        try:
            payload = msgspec.json.decode(body)
        except msgspec.DecodeError as exc:
            raise InvalidDeliveryError.undecodable_body() from exc
        if event_key == EVENT_KEY_REPO_PUSH:
            _check_push_payload(payload)

        params = EventParams(
            topic=f"{TOPIC_PREFIX}/{event_key}",
            event_payload=payload,
            metadata={EVENT_KEY_METADATA: event_key},
        )
        delivered = await self._broker.publish(params)
        log_info(
            logger,
            "Webhook delivered %s",
            format_fields(topic=params.topic, subscribers=delivered),
        )

        resp.media = {"status": "accepted", "subscribers": delivered}
        resp.status = HTTPStatus.ACCEPTED


def _check_push_payload(payload: object) -> None:
    try:
        decode_push_event(payload).repository.web_url  # noqa: B018
    except BitbucketResponseShapeError as exc:
        raise InvalidDeliveryError.malformed_event(EVENT_KEY_REPO_PUSH, exc) from exc
