"""Shared pytest fixtures for the inbound-apps test suite.

The upstream Inbound API is replaced by ``FakeInboundApi``: an
``httpx.MockTransport`` handler with a small route table that records every
request it sees.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest
from pydantic import SecretStr

from inbound_apps.config import Settings
from inbound_apps.gateway.client import InboundClient

API_BASE_URL = "https://inbound.test/api/v2"
API_PATH_PREFIX = "/api/v2"
API_KEY = "test-api-key"


class FakeInboundApi:
    """Route table standing in for the Inbound v2 API.

    Each route holds a queue of answers; the last answer repeats once the
    queue is down to one.  An answer is either ``(status, json_body)`` or an
    exception to raise from the transport.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[tuple[int, Any] | Exception]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, body: Any = None, status_code: int = 200) -> None:
        self.routes.setdefault((method, path), []).append((status_code, body))

    def add_error(self, method: str, path: str, exc: Exception) -> None:
        self.routes.setdefault((method, path), []).append(exc)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix(API_PATH_PREFIX)
        queue = self.routes.get((request.method, path))
        if not queue:
            return httpx.Response(404, json={"error": f"No route for {request.method} {path}"})
        answer = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(answer, Exception):
            raise answer
        status_code, body = answer
        return httpx.Response(status_code, json=body)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if r.method == method and r.url.path.removeprefix(API_PATH_PREFIX) == path
        ]

    def last_json(self) -> Any:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def fake_api() -> FakeInboundApi:
    return FakeInboundApi()


@pytest.fixture
def http_client(fake_api: FakeInboundApi) -> httpx.AsyncClient:
    """AsyncClient whose every request is answered by ``fake_api``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_api.handler))


@pytest.fixture
def inbound_client(http_client: httpx.AsyncClient) -> InboundClient:
    return InboundClient(http_client, api_key=API_KEY, base_url=API_BASE_URL)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Fully configured settings writing local files under ``tmp_path``."""
    return Settings(  # type: ignore[call-arg]
        _env_file=None,
        inbound_api_key=SecretStr(API_KEY),
        inbound_api_base_url=API_BASE_URL,
        browserless_token=SecretStr("test-browserless-token"),
        browserless_url="https://browserless.test",
        anthropic_api_key=SecretStr("test-anthropic-key"),
        cleanup_output_dir=tmp_path / "emails",
        wizard_state_path=tmp_path / "wizard_state.json",
    )


def _webhook_body(
    *,
    email_id: str = "em_123",
    html: str | None = None,
    text: str | None = None,
    sender: str | None = "alice@example.com",
    sender_name: str | None = "Alice",
    subject: str = "Quarterly report",
    message_id: str | None = "<abc123@mail.example.com>",
) -> dict[str, Any]:
    sender_field = None
    if sender is not None:
        display = f"{sender_name} <{sender}>" if sender_name else sender
        sender_field = {"text": display, "addresses": [{"name": sender_name, "address": sender}]}
    return {
        "event": "email.received",
        "timestamp": "2025-01-15T10:30:00.000Z",
        "email": {
            "id": email_id,
            "messageId": message_id,
            "from": sender_field,
            "to": {"text": "inbox@acme.test", "addresses": [{"address": "inbox@acme.test"}]},
            "recipient": "inbox@acme.test",
            "subject": subject,
            "receivedAt": "2025-01-15T10:30:00.000Z",
            "parsedData": {
                "raw": f"Subject: {subject}\r\n\r\n{text or html or ''}",
                "htmlBody": html,
                "textBody": text,
                "headers": {"x-mailer": "pytest"},
            },
            "cleanedContent": {
                "html": html,
                "text": text,
                "hasHtml": html is not None,
                "hasText": text is not None,
            },
        },
    }


@pytest.fixture
def make_webhook_body() -> Callable[..., dict[str, Any]]:
    """Factory for ``/api/inbound`` request bodies."""
    return _webhook_body


DEFAULT_DNS_RECORDS: list[dict[str, Any]] = [
    {
        "type": "MX",
        "name": "example.com",
        "value": "10 inbound-smtp.us-east-2.amazonaws.com",
        "isRequired": True,
        "isVerified": False,
    },
    {
        "type": "TXT",
        "name": "_amazonses.example.com",
        "value": "verification-token",
        "isRequired": True,
        "isVerified": False,
    },
    {
        "type": "CNAME",
        "name": "tok1._domainkey.example.com",
        "value": "tok1.dkim.amazonses.com",
        "isRequired": True,
        "isVerified": False,
    },
]


def _domain_payload(
    domain: str = "example.com",
    *,
    domain_id: str = "dom_123",
    status: str = "pending",
    has_mx_records: bool = False,
    fully_verified: bool = False,
    records: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    dns_records = DEFAULT_DNS_RECORDS if records is None else records
    return {
        "id": domain_id,
        "domain": domain,
        "status": status,
        "canReceiveEmails": has_mx_records,
        "hasMxRecords": has_mx_records,
        "dnsRecords": dns_records,
        "createdAt": "2025-01-15T10:30:00.000Z",
        "verificationCheck": {"dnsRecords": dns_records, "isFullyVerified": fully_verified},
    }


@pytest.fixture
def make_domain() -> Callable[..., dict[str, Any]]:
    """Factory for ``/domains`` response bodies."""
    return _domain_payload
