"""Tests for the server-side domain wizard proxy routes."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from inbound_apps.app import create_app
from inbound_apps.config import Settings
from inbound_apps.gateway.client import InboundClient

DomainFactory = Callable[..., dict[str, Any]]


@pytest.fixture
def client(settings: Settings, inbound_client: InboundClient) -> TestClient:
    app = create_app({"inbound_client": inbound_client}, "domains", settings)
    return TestClient(app)


@pytest.fixture
def unconfigured_client(settings: Settings) -> TestClient:
    app = create_app({}, "domains", settings)
    return TestClient(app)


class TestCreateDomain:
    def test_relays_upstream_json(
        self, client: TestClient, fake_api: Any, make_domain: DomainFactory
    ) -> None:
        fake_api.add("POST", "/domains", make_domain())

        response = client.post("/api/domains", json={"domain": "example.com"})

        assert response.status_code == 200
        assert response.json() == make_domain()
        upstream = fake_api.requests[-1]
        assert upstream.headers["Authorization"] == "Bearer test-api-key"
        assert json.loads(upstream.content) == {"domain": "example.com"}

    def test_domain_required(self, client: TestClient, fake_api: Any) -> None:
        response = client.post("/api/domains", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "Domain is required"}
        assert fake_api.requests == []

    def test_invalid_json_is_400(self, client: TestClient) -> None:
        response = client.post(
            "/api/domains", content=b"nope", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400

    def test_upstream_status_relayed(self, client: TestClient, fake_api: Any) -> None:
        fake_api.add("POST", "/domains", {"error": "Domain already exists"}, status_code=409)

        response = client.post("/api/domains", json={"domain": "example.com"})

        assert response.status_code == 409
        assert response.json() == {"error": "Domain already exists"}

    def test_missing_api_key_is_500(self, unconfigured_client: TestClient) -> None:
        response = unconfigured_client.post("/api/domains", json={"domain": "example.com"})

        assert response.status_code == 500
        assert response.json() == {"error": "Server configuration error"}


class TestGetDomain:
    def test_check_flag_forwarded(
        self, client: TestClient, fake_api: Any, make_domain: DomainFactory
    ) -> None:
        fake_api.add("GET", "/domains/dom_123", make_domain(has_mx_records=True))

        response = client.get("/api/domains/dom_123", params={"check": "true"})

        assert response.status_code == 200
        assert response.json()["hasMxRecords"] is True
        assert fake_api.requests[-1].url.params["check"] == "true"

    def test_without_check(
        self, client: TestClient, fake_api: Any, make_domain: DomainFactory
    ) -> None:
        fake_api.add("GET", "/domains/dom_123", make_domain())

        client.get("/api/domains/dom_123")

        assert "check" not in fake_api.requests[-1].url.params

    def test_network_failure_is_502(self, client: TestClient, fake_api: Any) -> None:
        fake_api.add_error("GET", "/domains/dom_123", httpx.ConnectError("unreachable"))

        response = client.get("/api/domains/dom_123")

        assert response.status_code == 502
        assert "unreachable" in response.json()["error"]

    def test_bad_check_flag_is_400(self, client: TestClient, fake_api: Any) -> None:
        response = client.get("/api/domains/dom_123", params={"check": "maybe"})

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid check: ")
        assert fake_api.requests == []


class TestSendEmail:
    def test_formats_sender_and_defaults_tags(self, client: TestClient, fake_api: Any) -> None:
        fake_api.add("POST", "/emails", {"id": "em_1"})

        response = client.post(
            "/api/emails",
            json={
                "from": "hello@example.com",
                "fromName": "hello",
                "to": "bob@example.com",
                "subject": "Test",
                "text": "Hi",
            },
        )

        assert response.status_code == 200
        assert response.json() == {"id": "em_1"}
        assert json.loads(fake_api.requests[-1].content) == {
            "from": "Hello <hello@example.com>",
            "to": "bob@example.com",
            "subject": "Test",
            "text": "Hi",
            "tags": [],
        }

    @pytest.mark.parametrize(
        ("body", "message"),
        [
            (
                {"to": "bob@example.com", "subject": "Test", "text": "Hi"},
                "Missing required fields: from, to, and subject are required",
            ),
            (
                {"from": "hello@example.com", "to": "bob@example.com", "subject": "Test"},
                "Either html or text content must be provided",
            ),
        ],
    )
    def test_validation(
        self, client: TestClient, fake_api: Any, body: dict[str, Any], message: str
    ) -> None:
        response = client.post("/api/emails", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": message}
        assert fake_api.requests == []
