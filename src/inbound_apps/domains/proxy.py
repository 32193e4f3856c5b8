"""Server-side proxy for the domain setup wizard.

Keeps the Inbound API key on the server: the browser-side wizard calls these
routes and they forward to the upstream API, relaying its JSON unchanged.
Upstream failures come back with the upstream status and ``error`` message
through the app's exception handlers.
"""

from __future__ import annotations

import json
from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from inbound_apps.domain.errors import ValidationError
from inbound_apps.domains.validation import format_sender
from inbound_apps.gateway.client import InboundClient
from inbound_apps.http_errors import error_response

logger = structlog.get_logger()

router = APIRouter(prefix="/api")

SERVER_CONFIGURATION_ERROR = "Server configuration error"


async def _read_json(request: Request) -> dict[str, Any]:
    try:
        body = json.loads(await request.body())
    except ValueError as exc:
        raise ValidationError("Request body must be valid JSON") from exc
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def _client(request: Request) -> InboundClient | None:
    client: InboundClient | None = request.app.state.services.get("inbound_client")
    if client is None:
        logger.error("Inbound API client not configured; INBOUND_API_KEY is not set")
    return client


@router.post("/domains")
async def create_domain(request: Request) -> JSONResponse:
    """Register a domain; body ``{"domain": "example.com"}``."""
    body = await _read_json(request)
    domain = body.get("domain")
    if not domain:
        raise ValidationError("Domain is required", field="domain")

    client = _client(request)
    if client is None:
        return error_response(SERVER_CONFIGURATION_ERROR, 500)

    data = await client.request("POST", "/domains", json={"domain": domain})
    logger.info("Domain created", domain=domain)
    return JSONResponse(content=data)


@router.get("/domains/{domain_id}")
async def get_domain(domain_id: str, request: Request, check: bool = False) -> JSONResponse:
    """Fetch a domain; ``?check=true`` forces a fresh DNS verification."""
    client = _client(request)
    if client is None:
        return error_response(SERVER_CONFIGURATION_ERROR, 500)

    params = {"check": "true"} if check else None
    data = await client.request("GET", f"/domains/{domain_id}", params=params)
    return JSONResponse(content=data)


@router.post("/emails")
async def send_email(request: Request) -> JSONResponse:
    """Send an email from the verified domain.

    Body: ``from``, ``fromName``, ``to``, ``subject``, ``html`` and/or
    ``text``, optional ``tags``.  The sender display name is ``fromName``
    with its first letter capitalised.
    """
    body = await _read_json(request)
    sender, to, subject = body.get("from"), body.get("to"), body.get("subject")
    if not sender or not to or not subject:
        raise ValidationError("Missing required fields: from, to, and subject are required")
    if not body.get("html") and not body.get("text"):
        raise ValidationError("Either html or text content must be provided")

    client = _client(request)
    if client is None:
        return error_response(SERVER_CONFIGURATION_ERROR, 500)

    payload = {
        "from": format_sender(sender, body.get("fromName")),
        "to": to,
        "subject": subject,
        "html": body.get("html"),
        "text": body.get("text"),
        "tags": body.get("tags") or [],
    }
    data = await client.request(
        "POST", "/emails", json={k: v for k, v in payload.items() if v is not None}
    )
    logger.info("Email sent through proxy", to=to, subject=subject)
    return JSONResponse(content=data)
