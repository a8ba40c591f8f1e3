"""Liveness and readiness probes for the webhook receiver."""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

__all__ = ["HealthResource", "ReadyResource"]


class HealthResource:
    """Answer ``GET /health`` while the process is serving requests."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        resp.status = HTTPStatus.OK
        resp.media = {"status": "ok"}


class ReadyResource:
    """Answer ``GET /ready``.

    Deliveries are handed straight to the in-process broker, so there is no
    backing service to wait for and readiness equals liveness.
    """

    async def on_get(self, _req: Request, resp: Response) -> None:
        resp.status = HTTPStatus.OK
        resp.media = {"status": "ready"}
