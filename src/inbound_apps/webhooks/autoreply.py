"""Receiver that answers every inbound email with a fixed acknowledgement."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from inbound_apps.domain.errors import ValidationError
from inbound_apps.domain.models import ReplyEmailRequest
from inbound_apps.domain.payload import InboundWebhookEmail
from inbound_apps.observability.metrics import REPLIES_SENT
from inbound_apps.webhooks.common import receive_webhook, services_of

logger = structlog.get_logger()

VARIANT = "autoreply"

ACKNOWLEDGEMENT_TEXT = (
    "Thank you for your email. We have received your request and will respond shortly."
)

router = APIRouter()


async def acknowledge_sender(email: InboundWebhookEmail, request: Request) -> dict[str, Any]:
    """Reply to the sender with ``ACKNOWLEDGEMENT_TEXT``.

    Raises:
        ValidationError: If the payload names no sender to reply to.
    """
    sender = email.sender_address
    if not sender:
        raise ValidationError("Invalid webhook: email has no sender address", field="from")

    reply = ReplyEmailRequest(
        from_=request.app.state.settings.support_from_address,
        to=sender,
        text=ACKNOWLEDGEMENT_TEXT,
        simple=True,
    )
    result = await services_of(request)["inbound_client"].reply_to_email(email.id, reply)
    REPLIES_SENT.labels(variant=VARIANT).inc()
    logger.info("Acknowledgement sent", email_id=email.id, to=sender, message_id=result.message_id)
    return {"message": "Email replied successfully", "data": result.to_wire()}


@router.post("/api/inbound")
async def inbound(request: Request) -> JSONResponse:
    return await receive_webhook(request, VARIANT, acknowledge_sender)
