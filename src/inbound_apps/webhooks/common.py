"""Request handling shared by every ``/api/inbound`` receiver.

``receive_webhook`` enforces the common contract around a variant's
processing function:

- body not JSON, or no ``email`` object -> 400 ``{"error": ...}``
- a ``ValidationError`` raised while processing -> 400
- any other exception -> 500 with a generic message, full error logged
- otherwise the processing function's dict, with 200
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse

from inbound_apps.domain.errors import ValidationError
from inbound_apps.domain.payload import InboundWebhookEmail, parse_webhook_body
from inbound_apps.http_errors import error_response
from inbound_apps.observability.metrics import WEBHOOK_FAILURES, WEBHOOKS_RECEIVED

logger = structlog.get_logger()

PROCESSING_FAILED_MESSAGE = "Failed to process inbound email"

WebhookProcessor = Callable[[InboundWebhookEmail, Request], Awaitable[dict[str, Any]]]


async def read_webhook_email(request: Request) -> InboundWebhookEmail:
    """Decode and validate the request body.

    Raises:
        ValidationError: If the body is not JSON or carries no valid ``email``.
    """
    raw = await request.body()
    try:
        body = json.loads(raw)
    except ValueError as exc:
        raise ValidationError("Invalid webhook payload: body is not valid JSON") from exc
    return parse_webhook_body(body).email


async def receive_webhook(
    request: Request,
    variant: str,
    process: WebhookProcessor,
) -> JSONResponse:
    """Run *process* for one webhook delivery under the shared error contract.

    Args:
        request: The incoming request.
        variant: Receiver name, used for logs and metric labels.
        process: Coroutine function turning the email into the success body.

    Returns:
        The JSON response to send back to the upstream service.
    """
    try:
        email = await read_webhook_email(request)
    except ValidationError as exc:
        logger.warning("Rejected webhook payload", variant=variant, error=exc.message)
        return error_response(exc.message, 400)

    WEBHOOKS_RECEIVED.labels(variant=variant).inc()
    log = logger.bind(variant=variant, email_id=email.id)
    log.info("Inbound email received", sender=email.sender_address, subject=email.subject)

    try:
        result = await process(email, request)
    except ValidationError as exc:
        log.warning("Inbound email rejected", error=exc.message)
        return error_response(exc.message, 400)
    except Exception:
        log.exception("Inbound email processing failed")
        WEBHOOK_FAILURES.labels(variant=variant).inc()
        return error_response(PROCESSING_FAILED_MESSAGE, 500)

    return JSONResponse(content=result)


def services_of(request: Request) -> dict[str, Any]:
    services: dict[str, Any] = request.app.state.services
    return services


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a ``Z`` suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
