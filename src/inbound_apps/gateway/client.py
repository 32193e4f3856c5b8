"""Typed async client for the Inbound v2 email API.

Provides the ``InboundClient`` class that every other component goes through
to reach the upstream service: thread listing and detail, thread actions,
sending and replying, and the domains endpoints used by the setup wizard.

The ``httpx.AsyncClient`` is injected by the caller so tests can swap in a
``httpx.MockTransport`` and so no hidden module-level instance is shared
between components.  No retries are performed: a single failed call surfaces
immediately as an ``UpstreamError``.
"""

from __future__ import annotations

from typing import Any, TypeVar

import httpx
import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from inbound_apps.config import DEFAULT_INBOUND_API_URL, Settings
from inbound_apps.domain.errors import ConfigurationError, UpstreamError
from inbound_apps.domain.models import (
    DomainData,
    GetThreadResponse,
    ReplyEmailRequest,
    ReplyEmailResponse,
    SendEmailRequest,
    SendEmailResponse,
    ThreadActionRequest,
    ThreadActionResponse,
    ThreadsListResponse,
)
from inbound_apps.domain.types import ThreadAction

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)


def _error_message(response: httpx.Response) -> str:
    """Pick the upstream ``error`` field, falling back to the status line."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, str) and error:
            return error
    return f"HTTP {response.status_code}: {response.reason_phrase}"


def _invalid_response(
    response: httpx.Response, method: str, path: str, detail: str
) -> UpstreamError:
    logger.warning(
        "Inbound API returned an invalid response",
        method=method,
        path=path,
        status=response.status_code,
        error=detail,
    )
    return UpstreamError(response.status_code, f"Invalid response from Inbound API: {detail}")


def _decode(response: httpx.Response, method: str, path: str) -> Any:
    """Decode a successful response body; an empty body decodes to ``None``."""
    if not response.content.strip():
        return None
    try:
        return response.json()
    except ValueError as exc:
        raise _invalid_response(response, method, path, "body is not JSON") from exc


def _parse(
    model: type[ModelT], response: httpx.Response, data: Any, method: str, path: str
) -> ModelT:
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        detail = f"unexpected {model.__name__} ({exc.error_count()} errors)"
        raise _invalid_response(response, method, path, detail) from exc


class InboundClient:
    """Authenticated wrapper around the Inbound v2 REST API.

    Args:
        http: The ``httpx.AsyncClient`` used for transport.  Its lifecycle
            belongs to the caller.
        api_key: Inbound API key sent as a bearer token on every call.
        base_url: API root, without trailing slash.

    Raises:
        ConfigurationError: If *api_key* is empty.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: str,
        base_url: str = DEFAULT_INBOUND_API_URL,
    ) -> None:
        if not api_key:
            raise ConfigurationError("Inbound API key is required")
        self._http = http
        self._api_key = api_key
        self._base_url = (base_url or DEFAULT_INBOUND_API_URL).rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings, http: httpx.AsyncClient) -> InboundClient:
        """Build a client from application settings.

        Args:
            settings: Loaded settings carrying the key and base URL.
            http: Transport to use.

        Returns:
            A configured ``InboundClient``.
        """
        return cls(
            http,
            api_key=settings.inbound_api_key.get_secret_value(),
            base_url=settings.inbound_api_base_url,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def is_configured(self) -> bool:
        return bool(self._api_key and self._base_url)

    def describe(self) -> dict[str, Any]:
        """Return configuration info safe to log (never the key itself)."""
        return {"has_api_key": bool(self._api_key), "base_url": self._base_url}

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        request_headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            **(headers or {}),
        }
        url = f"{self._base_url}{path}"
        try:
            response = await self._http.request(
                method, url, json=json, params=params, headers=request_headers
            )
        except httpx.TransportError as exc:
            logger.warning("Inbound API unreachable", method=method, path=path, error=str(exc))
            raise UpstreamError(None, f"Network error: {exc}") from exc

        if not response.is_success:
            message = _error_message(response)
            logger.warning(
                "Inbound API error",
                method=method,
                path=path,
                status=response.status_code,
                error=message,
            )
            raise UpstreamError(response.status_code, message)
        return response

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Issue one authenticated request and decode the JSON result.

        Args:
            method: HTTP method.
            path: Path below the API root, starting with ``/``.
            json: Optional JSON body.
            params: Optional query parameters.
            headers: Extra headers merged over the defaults.

        Returns:
            The decoded JSON body, or ``None`` for an empty body.

        Raises:
            UpstreamError: On a non-2xx response, a 2xx body that is not JSON,
                or with ``status_code=None`` when the request never produced
                a response.
        """
        response = await self._send(method, path, json=json, params=params, headers=headers)
        return _decode(response, method, path)

    async def _request_model(
        self,
        model: type[ModelT],
        method: str,
        path: str,
        **kwargs: Any,
    ) -> ModelT:
        response = await self._send(method, path, **kwargs)
        return _parse(model, response, _decode(response, method, path), method, path)

    # -- Threads ---------------------------------------------------------------

    async def list_threads(
        self,
        *,
        page: int | None = None,
        limit: int | None = None,
        search: str | None = None,
        unread_only: bool = False,
        archived_only: bool = False,
    ) -> ThreadsListResponse:
        """List conversation summaries.

        Only filters that are set are sent; boolean filters are sent as
        ``"true"``.
        """
        params: dict[str, str] = {}
        if page:
            params["page"] = str(page)
        if limit:
            params["limit"] = str(limit)
        if search:
            params["search"] = search
        if unread_only:
            params["unread_only"] = "true"
        if archived_only:
            params["archived_only"] = "true"

        return await self._request_model(
            ThreadsListResponse, "GET", "/threads", params=params or None
        )

    async def get_thread(self, thread_id: str) -> GetThreadResponse:
        """Fetch a thread with its ordered message list."""
        return await self._request_model(GetThreadResponse, "GET", f"/threads/{thread_id}")

    async def perform_thread_action(
        self, thread_id: str, action: ThreadAction | str
    ) -> ThreadActionResponse:
        """Mark a thread read/unread or archive/unarchive it.

        An empty 2xx body counts as success for the requested action.
        """
        body = ThreadActionRequest(action=ThreadAction(action))
        path = f"/threads/{thread_id}/actions"
        response = await self._send("POST", path, json=body.to_wire())
        data = _decode(response, "POST", path)
        if data is None:
            return ThreadActionResponse(
                success=True, action=body.action.value, thread_id=thread_id
            )
        return _parse(ThreadActionResponse, response, data, "POST", path)

    # -- Sending ---------------------------------------------------------------

    async def send_email(self, email: SendEmailRequest) -> SendEmailResponse:
        """Send a new email."""
        return await self._request_model(
            SendEmailResponse, "POST", "/emails", json=email.to_wire()
        )

    async def reply_to_email(
        self,
        email_id: str,
        reply: ReplyEmailRequest,
        *,
        idempotency_key: str | None = None,
    ) -> ReplyEmailResponse:
        """Reply to a specific message.

        Args:
            email_id: Upstream id of the message being replied to.
            reply: Reply payload; ``reply_all`` is resolved server-side.
            idempotency_key: When set, sent as ``Idempotency-Key`` so the
                upstream drops duplicate submissions.
        """
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else None
        return await self._request_model(
            ReplyEmailResponse,
            "POST",
            f"/emails/{email_id}/reply-new",
            json=reply.to_wire(),
            headers=headers,
        )

    # -- Domains ---------------------------------------------------------------

    async def create_domain(self, domain: str) -> DomainData:
        """Register a domain and return its required DNS records."""
        return await self._request_model(DomainData, "POST", "/domains", json={"domain": domain})

    async def get_domain(self, domain_id: str, *, check: bool = False) -> DomainData:
        """Fetch a domain, optionally forcing a fresh DNS verification check."""
        params = {"check": "true"} if check else None
        return await self._request_model(
            DomainData, "GET", f"/domains/{domain_id}", params=params
        )
