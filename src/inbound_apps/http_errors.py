"""Exception handlers that render the error taxonomy as ``{"error": ...}`` JSON.

- ``ValidationError`` -> 400 with its message.
- FastAPI's ``RequestValidationError`` -> 400 naming the first bad parameter.
- ``UpstreamError`` -> the upstream status and message (502 when the upstream
  never answered or answered with a non-error status).
- anything else -> 500 with a generic message; details are only logged.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from inbound_apps.domain.errors import UpstreamError, ValidationError

logger = structlog.get_logger()

GENERIC_ERROR_MESSAGE = "Internal server error"
INVALID_REQUEST_MESSAGE = "Invalid request"


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(content={"error": message}, status_code=status_code)


def upstream_status(exc: UpstreamError) -> int:
    """HTTP status to relay for *exc*: the upstream one when it is an error status."""
    if exc.status_code is not None and 400 <= exc.status_code < 600:
        return exc.status_code
    return 502


def request_validation_message(exc: RequestValidationError) -> str:
    """Describe the first failing parameter, e.g. ``Invalid check: Input should be ...``."""
    errors = exc.errors()
    if not errors:
        return INVALID_REQUEST_MESSAGE
    first = errors[0]
    # loc starts with the source ("query", "path", "body"); the rest names the field
    name = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = first.get("msg") or ""
    if not name:
        return f"{INVALID_REQUEST_MESSAGE}: {message}" if message else INVALID_REQUEST_MESSAGE
    return f"Invalid {name}: {message}" if message else f"Invalid {name}"


def register_error_handlers(app: FastAPI) -> None:
    """Install the taxonomy-aware exception handlers on *app*.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        logger.info("Rejected request", path=request.url.path, error=exc.message, field=exc.field)
        return error_response(exc.message, 400)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        message = request_validation_message(exc)
        logger.info("Rejected request", path=request.url.path, error=message)
        return error_response(message, 400)

    @app.exception_handler(UpstreamError)
    async def handle_upstream_error(request: Request, exc: UpstreamError) -> JSONResponse:
        status = upstream_status(exc)
        logger.warning(
            "Upstream call failed",
            path=request.url.path,
            upstream_status=exc.status_code,
            error=exc.message,
        )
        return error_response(exc.message, status)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error", path=request.url.path, exc_info=exc)
        return error_response(GENERIC_ERROR_MESSAGE, 500)
