"""Cairn HTTP API layer.

This package provides the Falcon Asynchronous Server Gateway Interface
(ASGI) application that receives Bitbucket Cloud webhooks and hands them
to subscribed entity providers.

Usage
-----
Create the application around an event broker::

    from cairn.api import create_app

    app = create_app(broker)

"""

from cairn.api.app import create_app

__all__ = ["create_app"]
