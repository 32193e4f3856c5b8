"""Error reporting: Sentry for exceptions, fed from structlog ERROR events."""

from __future__ import annotations

import logging

import sentry_sdk
import structlog
from sentry_sdk.integrations.logging import LoggingIntegration
from structlog_sentry import SentryProcessor

TRACES_SAMPLE_RATE = 0.1


def init_sentry(dsn: str, *, environment: str = "development") -> bool:
    """Start the Sentry SDK; returns ``False`` and does nothing when *dsn* is empty."""
    if not dsn:
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        traces_sample_rate=TRACES_SAMPLE_RATE,
        send_default_pii=False,
        # errors arrive through the structlog processor only
        integrations=[LoggingIntegration(event_level=None, level=None)],
    )
    return True


def get_sentry_processor() -> structlog.types.Processor:
    # must sit between add_log_level and the renderer
    return SentryProcessor(event_level=logging.ERROR)
