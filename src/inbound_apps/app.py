"""Application assembly for the HTTP servers.

One process serves one variant: a webhook receiver (``log``, ``cleanup``,
``pdf``, ``analysis``, ``autoreply``) or the domain wizard proxy
(``domains``).  Every variant gets the same surroundings:

- **structlog** with JSON rendering (production) or colored console (development)
- **Sentry** error reporting when ``SENTRY_DSN`` is set
- **Prometheus** metrics on ``/metrics``
- ``X-Request-ID`` propagation, ``/health`` and ``/ready``
- exception handlers rendering ``{"error": ...}``
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import APIRouter, FastAPI

from inbound_apps.config import (
    Settings,
    exit_on_configuration_error,
    get_settings,
    require_credentials,
)
from inbound_apps.domain.errors import ConfigurationError
from inbound_apps.domains.proxy import router as domains_router
from inbound_apps.gateway.client import InboundClient
from inbound_apps.health import register_health_routes
from inbound_apps.http_errors import register_error_handlers
from inbound_apps.llm.client import get_anthropic_client
from inbound_apps.observability.metrics import setup_metrics
from inbound_apps.observability.middleware import SERVICE_NAME, RequestIdMiddleware
from inbound_apps.observability.sentry import get_sentry_processor, init_sentry
from inbound_apps.render.pdf import BrowserlessRenderer
from inbound_apps.webhooks import VARIANT_ROUTERS

logger = structlog.get_logger()

HTTP_TIMEOUT_SECONDS = 60.0

ROUTERS: dict[str, APIRouter] = {**VARIANT_ROUTERS, "domains": domains_router}
VARIANTS: tuple[str, ...] = tuple(ROUTERS)

# Credentials each variant cannot start without.
VARIANT_CREDENTIALS: dict[str, tuple[str, ...]] = {
    "pdf": ("inbound_api_key", "browserless_token"),
    "analysis": ("inbound_api_key", "anthropic_api_key"),
}
DEFAULT_CREDENTIALS: tuple[str, ...] = ("inbound_api_key",)


def configure_logging(production: bool = False, *, sentry_enabled: bool = False) -> None:
    """Configure structlog for production (JSON) or development (console).

    Production mode (*production=True*): JSON rendering at INFO level.
    Development mode: colored console rendering at DEBUG level.

    Args:
        production: Enable production mode if ``True``.
        sentry_enabled: Forward ERROR events to Sentry.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
    ]
    if sentry_enabled:
        shared_processors.append(get_sentry_processor())
    shared_processors += [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if production:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        log_level = logging.INFO
    else:
        renderer = structlog.dev.ConsoleRenderer()
        log_level = logging.DEBUG

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(service=SERVICE_NAME)


def initialize_services(
    settings: Settings,
    variant: str,
    *,
    http: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Create the collaborators *variant* needs.

    Args:
        settings: Loaded application settings.
        variant: One of ``VARIANTS``.
        http: Transport to share between clients; a new one is created when
            omitted.

    Returns:
        A dict of initialized service instances keyed by name.

    Raises:
        ConfigurationError: If a credential the variant needs is missing.
        ValueError: If *variant* is unknown.
    """
    if variant not in ROUTERS:
        msg = f"Unknown variant {variant!r}; expected one of {', '.join(VARIANTS)}"
        raise ValueError(msg)
    require_credentials(settings, *VARIANT_CREDENTIALS.get(variant, DEFAULT_CREDENTIALS))

    if http is None:
        http = httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS)

    services: dict[str, Any] = {
        "http": http,
        "inbound_client": InboundClient.from_settings(settings, http),
    }
    if variant == "pdf":
        services["renderer"] = BrowserlessRenderer.from_settings(settings, http)
    if variant == "analysis":
        services["anthropic_client"] = get_anthropic_client(settings)

    logger.info("Services initialized", variant=variant, services=sorted(services))
    return services


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Log startup; close the shared HTTP transport on shutdown."""
    logger.info("FastAPI application starting", variant=app.state.variant)
    yield
    http: httpx.AsyncClient | None = app.state.services.get("http")
    if http is not None:
        await http.aclose()
    logger.info("FastAPI application stopped", variant=app.state.variant)


def create_app(
    services: dict[str, Any],
    variant: str,
    settings: Settings | None = None,
) -> FastAPI:
    """Create the FastAPI app serving *variant*.

    Args:
        services: The initialized services dict from ``initialize_services``.
        variant: Which router to mount.
        settings: Settings exposed to handlers; ``get_settings()`` when omitted.

    Returns:
        The configured FastAPI application.
    """
    fastapi_app = FastAPI(title=f"Inbound apps ({variant})", lifespan=lifespan)
    fastapi_app.state.services = services
    fastapi_app.state.settings = settings if settings is not None else get_settings()
    fastapi_app.state.variant = variant

    fastapi_app.add_middleware(RequestIdMiddleware)
    register_error_handlers(fastapi_app)
    fastapi_app.include_router(ROUTERS[variant])
    register_health_routes(fastapi_app)
    setup_metrics(fastapi_app)
    return fastapi_app


def run_server(variant: str, settings: Settings | None = None, *, port: int | None = None) -> None:
    """Configure everything and serve *variant* with uvicorn until interrupted.

    A missing credential ends the process with a STARTUP FAILED block and
    exit status 1.
    """
    if settings is None:
        settings = get_settings()
    sentry_enabled = init_sentry(
        settings.sentry_dsn,
        environment="production" if settings.production else "development",
    )
    configure_logging(production=settings.production, sentry_enabled=sentry_enabled)
    logger.info("Application starting", variant=variant)

    try:
        services = initialize_services(settings, variant)
    except ConfigurationError as exc:
        exit_on_configuration_error(exc)

    fastapi_app = create_app(services, variant, settings)
    uvicorn.run(
        fastapi_app,
        host="0.0.0.0",
        port=port or settings.webhook_port,
        log_level="info",
    )
