"""Tests for the ``{"error": ...}`` exception handlers."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient

from inbound_apps.domain.errors import UpstreamError, ValidationError
from inbound_apps.http_errors import (
    GENERIC_ERROR_MESSAGE,
    INVALID_REQUEST_MESSAGE,
    register_error_handlers,
    request_validation_message,
    upstream_status,
)


def _make_app() -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/invalid")
    async def invalid() -> None:
        raise ValidationError("Domain is required", field="domain")

    @app.get("/upstream/{status}")
    async def upstream(status: int) -> None:
        raise UpstreamError(status or None, "Upstream said no")

    @app.get("/boom")
    async def boom() -> None:
        raise RuntimeError("secret internals")

    return app


@pytest.fixture
def client() -> TestClient:
    return TestClient(_make_app(), raise_server_exceptions=False)


class TestErrorHandlers:
    def test_validation_error_is_400(self, client: TestClient) -> None:
        response = client.get("/invalid")

        assert response.status_code == 400
        assert response.json() == {"error": "Domain is required"}

    def test_upstream_status_relayed(self, client: TestClient) -> None:
        response = client.get("/upstream/404")

        assert response.status_code == 404
        assert response.json() == {"error": "Upstream said no"}

    def test_no_upstream_response_is_502(self, client: TestClient) -> None:
        assert client.get("/upstream/0").status_code == 502

    def test_unexpected_error_is_generic_500(self, client: TestClient) -> None:
        response = client.get("/boom")

        assert response.status_code == 500
        assert response.json() == {"error": GENERIC_ERROR_MESSAGE}
        assert "secret" not in response.text

    def test_bad_parameter_is_400_error_body(self, client: TestClient) -> None:
        response = client.get("/upstream/not-a-number")

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid status: ")
        assert "detail" not in response.json()


@pytest.mark.parametrize(
    ("status", "expected"),
    [(None, 502), (302, 502), (400, 400), (503, 503), (600, 502)],
)
def test_upstream_status(status: int | None, expected: int) -> None:
    assert upstream_status(UpstreamError(status, "x")) == expected


@pytest.mark.parametrize(
    ("errors", "expected"),
    [
        ([], INVALID_REQUEST_MESSAGE),
        ([{"loc": ("query", "check"), "msg": "bad flag"}], "Invalid check: bad flag"),
        ([{"loc": ("body",), "msg": "bad body"}], "Invalid request: bad body"),
    ],
)
def test_request_validation_message(errors: list[dict[str, object]], expected: str) -> None:
    assert request_validation_message(RequestValidationError(errors)) == expected
