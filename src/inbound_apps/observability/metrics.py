"""Prometheus metrics instrumentation for the webhook receivers.

Provides:
- ``setup_metrics(app)``: Attach prometheus-fastapi-instrumentator to a FastAPI app,
  exposing ``/metrics`` with HTTP request duration/count plus the counters below.
- ``WEBHOOKS_RECEIVED``: payloads accepted by ``/api/inbound``, per variant.
- ``WEBHOOK_FAILURES``: payloads that failed processing (including detached
  work), per variant.
- ``REPLIES_SENT``: replies delivered upstream, per variant.
"""

from __future__ import annotations

from fastapi import FastAPI
from prometheus_client import Counter
from prometheus_fastapi_instrumentator import Instrumentator

WEBHOOKS_RECEIVED: Counter = Counter(
    "inbound_webhooks_received_total",
    "Number of inbound webhook payloads received",
    ["variant"],
)

WEBHOOK_FAILURES: Counter = Counter(
    "inbound_webhook_failures_total",
    "Number of inbound webhook payloads that failed processing",
    ["variant"],
)

REPLIES_SENT: Counter = Counter(
    "inbound_replies_sent_total",
    "Number of replies sent by webhook receivers",
    ["variant"],
)


def setup_metrics(app: FastAPI) -> None:
    """Instrument *app* with Prometheus HTTP metrics and expose ``/metrics``.

    Health, readiness and metrics endpoints are excluded from instrumentation.

    Args:
        app: The FastAPI application to instrument.
    """
    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/health", "/ready", "/metrics"],
    ).instrument(app).expose(app, include_in_schema=False, should_gzip=True)
