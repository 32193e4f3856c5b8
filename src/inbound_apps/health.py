"""Health and readiness endpoints for container orchestration.

- ``GET /health`` -- Liveness check.  Always 200 with a timestamp.
- ``GET /ready``  -- Readiness check.  200 only when the Gateway Client and
  the variant's extra collaborators are initialized; 503 with per-check
  details otherwise.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from inbound_apps.webhooks.common import utc_timestamp

# Collaborators each variant needs beyond the Gateway Client.
VARIANT_DEPENDENCIES: dict[str, tuple[str, ...]] = {
    "pdf": ("renderer",),
    "analysis": ("anthropic_client",),
}


def register_health_routes(app: FastAPI) -> None:
    """Register ``/health`` and ``/ready`` endpoints on *app*.

    Args:
        app: The FastAPI application instance.
    """

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Liveness check."""
        return {"status": "ok", "timestamp": utc_timestamp()}

    @app.get("/ready")
    async def ready(request: Request) -> JSONResponse:
        """Readiness check -- checks the services this variant depends on."""
        services: dict[str, Any] = request.app.state.services
        variant: str = request.app.state.variant
        names = ("inbound_client", *VARIANT_DEPENDENCIES.get(variant, ()))
        checks = {name: "ok" if services.get(name) is not None else "fail" for name in names}

        all_ok = all(v == "ok" for v in checks.values())
        status = "ready" if all_ok else "not_ready"
        code = 200 if all_ok else 503

        return JSONResponse(content={"status": status, "checks": checks}, status_code=code)
