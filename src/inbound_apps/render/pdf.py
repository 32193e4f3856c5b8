"""Browserless client that turns an HTML document into PDF bytes.

The renderer is a plain HTTP collaborator: one ``POST /pdf?token=...`` per
document, no retries.  Any failure surfaces as ``ProcessingError`` so the
webhook layer maps it to a generic 500.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from inbound_apps.config import DEFAULT_BROWSERLESS_URL, Settings
from inbound_apps.domain.errors import ConfigurationError, ProcessingError

logger = structlog.get_logger()

DEFAULT_PDF_OPTIONS: dict[str, Any] = {
    "displayHeaderFooter": False,
    "printBackground": True,
    "format": "A4",
}


class BrowserlessRenderer:
    """Render HTML to PDF via a Browserless ``/pdf`` endpoint.

    Args:
        http: Transport owned by the caller.
        token: Browserless API token, sent as the ``token`` query parameter.
        base_url: Browserless root URL.

    Raises:
        ConfigurationError: If *token* is empty.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        token: str,
        base_url: str = DEFAULT_BROWSERLESS_URL,
    ) -> None:
        if not token:
            raise ConfigurationError("Browserless token is required")
        self._http = http
        self._token = token
        self._base_url = (base_url or DEFAULT_BROWSERLESS_URL).rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings, http: httpx.AsyncClient) -> BrowserlessRenderer:
        return cls(
            http,
            token=settings.browserless_token.get_secret_value(),
            base_url=settings.browserless_url,
        )

    async def render_pdf(self, html: str, options: dict[str, Any] | None = None) -> bytes:
        """Render *html* and return the PDF document.

        Args:
            html: A complete HTML document.
            options: Overrides merged over ``DEFAULT_PDF_OPTIONS``.

        Returns:
            The raw PDF bytes.

        Raises:
            ProcessingError: On a non-2xx answer or a transport failure.
        """
        body = {"html": html, "options": {**DEFAULT_PDF_OPTIONS, **(options or {})}}
        try:
            response = await self._http.post(
                f"{self._base_url}/pdf",
                params={"token": self._token},
                json=body,
                headers={"Cache-Control": "no-cache", "Content-Type": "application/json"},
            )
        except httpx.TransportError as exc:
            logger.warning("Browserless unreachable", error=str(exc))
            raise ProcessingError(f"PDF rendering failed: {exc}") from exc

        if not response.is_success:
            logger.warning(
                "Browserless returned an error",
                status=response.status_code,
                detail=response.text[:500],
            )
            raise ProcessingError(
                f"PDF rendering failed: HTTP {response.status_code}: {response.reason_phrase}"
            )

        logger.debug("PDF rendered", size_bytes=len(response.content))
        return response.content
