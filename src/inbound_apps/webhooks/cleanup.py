"""Receiver that strips quoted replies and reports the size/token saving.

Both the raw and the cleaned body are written to ``cleanup_output_dir`` for
inspection.  No reply is sent.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from inbound_apps.domain.errors import ValidationError
from inbound_apps.domain.payload import InboundWebhookEmail
from inbound_apps.transform.html_cleanup import clean_email_html, persist_cleanup
from inbound_apps.webhooks.common import receive_webhook, utc_timestamp

logger = structlog.get_logger()

VARIANT = "cleanup"

router = APIRouter()


async def clean_and_measure(email: InboundWebhookEmail, request: Request) -> dict[str, Any]:
    """Strip ``gmail_quote`` subtrees, persist both versions, log the deltas.

    Raises:
        ValidationError: If the email has no HTML body.
    """
    html = email.html
    if not html:
        raise ValidationError("No HTML content found in email", field="html")

    result = clean_email_html(html)
    output_dir = request.app.state.settings.cleanup_output_dir
    raw_path, cleaned_path = await asyncio.to_thread(persist_cleanup, result, output_dir, email.id)

    stats = {
        "removedElements": result.removed_elements,
        "before": {"bytes": result.before.size_bytes, "tokens": result.before.tokens},
        "after": {"bytes": result.after.size_bytes, "tokens": result.after.tokens},
        "bytesSaved": result.bytes_saved,
        "tokensSaved": result.tokens_saved,
    }
    logger.info(
        "Quoted replies stripped",
        email_id=email.id,
        removed_elements=result.removed_elements,
        bytes_before=result.before.size_bytes,
        bytes_after=result.after.size_bytes,
        tokens_before=result.before.tokens,
        tokens_after=result.after.tokens,
        tokens_saved=result.tokens_saved,
        raw_path=str(raw_path),
        cleaned_path=str(cleaned_path),
    )
    return {"status": "ok", "timestamp": utc_timestamp(), "stats": stats}


@router.post("/api/inbound")
async def inbound(request: Request) -> JSONResponse:
    return await receive_webhook(request, VARIANT, clean_and_measure)
