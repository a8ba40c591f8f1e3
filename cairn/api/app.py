"""Application factory for the Cairn Falcon ASGI application.

Usage
-----
Serve webhooks for providers subscribed to a broker::

    broker = EventBroker()
    BitbucketCloudEntityProvider.from_config(config, ..., events=broker)
    app = create_app(broker)

"""

from __future__ import annotations

import falcon.asgi

from cairn.api.errors import InvalidDeliveryError, handle_invalid_delivery
from cairn.api.health.resources import HealthResource, ReadyResource
from cairn.api.webhooks import BitbucketCloudWebhookResource
from cairn.events.broker import EventBroker

__all__ = ["WEBHOOK_ROUTE", "create_app"]

WEBHOOK_ROUTE = "/webhooks/bitbucket-cloud"


def create_app(broker: EventBroker | None = None) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Parameters
    ----------
    broker
        Broker receiving webhook events. A broker without subscribers is
        used when omitted, so deliveries are accepted and dropped.

    Returns
    -------
    falcon.asgi.App
        Application serving ``/health``, ``/ready`` and the webhook route.

    """
    app = falcon.asgi.App()

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource())
    app.add_route(
        WEBHOOK_ROUTE, BitbucketCloudWebhookResource(broker or EventBroker())
    )

    app.add_error_handler(InvalidDeliveryError, handle_invalid_delivery)

    return app
