"""Rejections raised by webhook resources and their Falcon handler."""

from __future__ import annotations

import typing as typ

import falcon

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

__all__ = ["InvalidDeliveryError", "handle_invalid_delivery"]


class InvalidDeliveryError(Exception):
    """A webhook delivery that can never be processed.

    Answered with HTTP 400 so the sender does not retry it. ``field`` names
    the offending header, or is ``None`` when the body itself is at fault.
    """

    def __init__(self, reason: str, *, field: str | None = None) -> None:
        """Record the rejection reason and the offending field."""
        self.reason = reason
        self.field = field
        super().__init__(reason if field is None else f"{field}: {reason}")

    @classmethod
    def missing_header(cls, header: str) -> InvalidDeliveryError:
        """Build the error for a delivery lacking a required header."""
        return cls("header is required", field=header)

    @classmethod
    def malformed_event(cls, event_key: str, detail: object) -> InvalidDeliveryError:
        """Build the error for an event body missing required fields."""
        return cls(f"{event_key} body is malformed: {detail}")

    @classmethod
    def undecodable_body(cls) -> InvalidDeliveryError:
        """Build the error for a delivery whose body is not JSON."""
        return cls("body must be a JSON document")


async def handle_invalid_delivery(
    _req: Request,
    resp: Response,
    ex: InvalidDeliveryError,
    _params: dict[str, typ.Any],
) -> None:
    """Answer a rejected delivery with a 400 JSON problem body."""
    problem = {"title": "Invalid webhook delivery", "description": ex.reason}
    if ex.field:
        problem["field"] = ex.field
    resp.status = falcon.HTTP_400
    resp.media = problem
