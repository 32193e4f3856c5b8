"""Receiver that only logs the inbound email and acknowledges it."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from inbound_apps.domain.payload import InboundWebhookEmail
from inbound_apps.webhooks.common import receive_webhook

logger = structlog.get_logger()

VARIANT = "log"

router = APIRouter()


async def log_email(email: InboundWebhookEmail, request: Request) -> dict[str, Any]:
    logger.info(
        "Inbound data received",
        email_id=email.id,
        recipient=email.recipient,
        received_at=email.received_at,
        has_html=email.html is not None,
        has_text=email.text is not None,
    )
    return {"message": "Inbound data received successfully"}


@router.post("/api/inbound")
async def inbound(request: Request) -> JSONResponse:
    return await receive_webhook(request, VARIANT, log_email)
