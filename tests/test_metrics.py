"""Tests for the Prometheus metrics endpoint and the webhook counters."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from inbound_apps.observability.metrics import (
    REPLIES_SENT,
    WEBHOOK_FAILURES,
    WEBHOOKS_RECEIVED,
    setup_metrics,
)


@pytest.fixture()
def metrics_app() -> FastAPI:
    """Create a minimal FastAPI app with Prometheus instrumentation.

    Prometheus collectors are registered globally; the instrumentator reuses
    its collectors when called again for another app.
    """
    app = FastAPI()

    @app.get("/hello")
    async def hello() -> dict[str, str]:
        return {"msg": "hello"}

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    setup_metrics(app)
    return app


@pytest.fixture()
def metrics_client(metrics_app: FastAPI) -> TestClient:
    return TestClient(metrics_app)


def test_metrics_endpoint_returns_prometheus_format(metrics_client: TestClient) -> None:
    """GET /metrics exposes HTTP metrics and the webhook counters."""
    WEBHOOKS_RECEIVED.labels(variant="log").inc()
    WEBHOOK_FAILURES.labels(variant="log").inc(0)
    REPLIES_SENT.labels(variant="autoreply").inc(0)
    metrics_client.get("/hello")

    resp = metrics_client.get("/metrics")

    assert resp.status_code == 200
    body = resp.text
    assert "http_request" in body
    assert 'inbound_webhooks_received_total{variant="log"}' in body
    assert "inbound_webhook_failures_total" in body
    assert "inbound_replies_sent_total" in body


def test_excluded_handlers_not_in_metrics(metrics_client: TestClient) -> None:
    """/health does not appear as a handler label."""
    metrics_client.get("/health")
    metrics_client.get("/hello")

    body = metrics_client.get("/metrics").text

    handler_lines = [
        line
        for line in body.splitlines()
        if "http_request_duration" in line and 'handler="' in line
    ]
    assert not any('handler="/health"' in line for line in handler_lines)
    assert any('handler="/hello"' in line for line in handler_lines)


def test_setup_metrics_twice_does_not_raise() -> None:
    setup_metrics(FastAPI())
    setup_metrics(FastAPI())
