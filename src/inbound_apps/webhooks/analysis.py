"""Receiver that analyses a forwarded email with Claude and replies with a report.

The webhook is acknowledged straight away; analysis and reply run as a
background task after the response is sent.  The reply carries an
idempotency key derived from the original message id, so a redelivered
webhook cannot produce a second reply.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog
from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.responses import JSONResponse, RedirectResponse

from inbound_apps.domain.payload import InboundWebhookEmail
from inbound_apps.llm.analysis import (
    analysis_idempotency_key,
    analyze_email,
    compose_analysis_reply,
)
from inbound_apps.observability.metrics import REPLIES_SENT, WEBHOOK_FAILURES
from inbound_apps.webhooks.common import receive_webhook, services_of, utc_timestamp

logger = structlog.get_logger()

VARIANT = "analysis"
HOMEPAGE_URL = "https://inbound.new"

router = APIRouter()


async def analyze_and_reply(
    email: InboundWebhookEmail,
    services: dict[str, Any],
    from_address: str,
) -> None:
    """Analyse *email* and reply to it; failures are logged and counted only."""
    log = logger.bind(variant=VARIANT, email_id=email.id)
    try:
        analysis = await asyncio.to_thread(analyze_email, email, services["anthropic_client"])
        reply = compose_analysis_reply(email, analysis, from_address)
        log.info("Sending analysis reply", subject=reply.subject, dangerous=analysis.dangerous)
        result = await services["inbound_client"].reply_to_email(
            email.id, reply, idempotency_key=analysis_idempotency_key(email)
        )
    except Exception:
        log.exception("Analysis reply failed")
        WEBHOOK_FAILURES.labels(variant=VARIANT).inc()
        return

    REPLIES_SENT.labels(variant=VARIANT).inc()
    log.info("Analysis reply sent", message_id=result.message_id)


@router.get("/", include_in_schema=False)
async def homepage() -> RedirectResponse:
    return RedirectResponse(HOMEPAGE_URL)


@router.post("/api/inbound")
async def inbound(request: Request, background_tasks: BackgroundTasks) -> JSONResponse:
    async def acknowledge(email: InboundWebhookEmail, request: Request) -> dict[str, Any]:
        background_tasks.add_task(
            analyze_and_reply,
            email,
            services_of(request),
            request.app.state.settings.analysis_from_address,
        )
        return {"status": "ok", "timestamp": utc_timestamp()}

    return await receive_webhook(request, VARIANT, acknowledge)
