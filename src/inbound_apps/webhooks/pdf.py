"""Receiver that turns an inbound email into a PDF and replies with it.

HTML bodies lose their forwarded/quoted history; text-only bodies are reduced
to the latest reply and wrapped in a minimal document.  The branding footer
is appended and the result rendered through Browserless.  The PDF goes back
to the sender as ``document.pdf``.
"""

from __future__ import annotations

import base64
from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from inbound_apps.domain.errors import ValidationError
from inbound_apps.domain.models import OutboundAttachment, ReplyEmailRequest
from inbound_apps.domain.payload import InboundWebhookEmail
from inbound_apps.observability.metrics import REPLIES_SENT
from inbound_apps.transform.forwarded import (
    add_branding_footer,
    remove_forwarded_content,
    wrap_text_in_html,
)
from inbound_apps.transform.replies import extract_latest_reply
from inbound_apps.webhooks.common import receive_webhook, services_of

logger = structlog.get_logger()

VARIANT = "pdf"

PDF_FILENAME = "document.pdf"
PDF_CONTENT_TYPE = "application/pdf"
PDF_REPLY_TEXT = "see attached\n\nsent from my iphone"

router = APIRouter()


def build_document(email: InboundWebhookEmail) -> str:
    """Pick and clean the body that becomes the PDF.

    Raises:
        ValidationError: If the email has neither HTML nor text content.
    """
    if email.html:
        return remove_forwarded_content(email.html)
    if email.text:
        return wrap_text_in_html(extract_latest_reply(email.text))
    raise ValidationError("No content found in email")


async def reply_with_pdf(email: InboundWebhookEmail, request: Request) -> dict[str, Any]:
    services = services_of(request)
    document = add_branding_footer(build_document(email))

    pdf = await services["renderer"].render_pdf(document)
    logger.info("PDF generated", email_id=email.id, size_bytes=len(pdf))

    reply = ReplyEmailRequest(
        from_=request.app.state.settings.pdf_from_address,
        text=PDF_REPLY_TEXT,
        attachments=[
            OutboundAttachment(
                filename=PDF_FILENAME,
                content=base64.b64encode(pdf).decode("ascii"),
                content_type=PDF_CONTENT_TYPE,
            ),
        ],
    )
    result = await services["inbound_client"].reply_to_email(email.id, reply)
    REPLIES_SENT.labels(variant=VARIANT).inc()
    logger.info("PDF reply sent", email_id=email.id, message_id=result.message_id)
    return {"success": True, "messageId": result.message_id}


@router.post("/api/inbound")
async def inbound(request: Request) -> JSONResponse:
    return await receive_webhook(request, VARIANT, reply_with_pdf)
