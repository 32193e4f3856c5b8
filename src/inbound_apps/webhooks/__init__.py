"""Webhook receivers for parsed inbound emails.

Each variant module exposes an ``APIRouter`` with ``POST /api/inbound``;
``VARIANT_ROUTERS`` maps variant names to those routers.
"""

from fastapi import APIRouter

from inbound_apps.domain.payload import (
    InboundWebhookEmail,
    InboundWebhookPayload,
    parse_webhook_body,
)
from inbound_apps.webhooks import analysis, autoreply, cleanup, log, pdf

VARIANT_ROUTERS: dict[str, APIRouter] = {
    log.VARIANT: log.router,
    cleanup.VARIANT: cleanup.router,
    pdf.VARIANT: pdf.router,
    analysis.VARIANT: analysis.router,
    autoreply.VARIANT: autoreply.router,
}

__all__ = [
    "VARIANT_ROUTERS",
    "InboundWebhookEmail",
    "InboundWebhookPayload",
    "parse_webhook_body",
]
