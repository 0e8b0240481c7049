"""Tests for global exception handlers.

Every error leaves the API as ``{"message": ...}`` with the status carried by
the error type, and unexpected exceptions never leak their details.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI, Query
from fastapi.testclient import TestClient

from animequotes.core.errors import (
    AppError,
    MissingCredentialError,
    NotFoundAppError,
    QuotaExceededError,
    RouteNotFoundError,
    StoreUnavailableError,
    UnknownCredentialError,
)
from animequotes.core.exception_handlers import error_response, setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    """Create test client with handlers enabled."""
    return TestClient(app_with_handlers, raise_server_exceptions=False)


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    @pytest.mark.parametrize(
        ("error", "status", "message"),
        [
            (MissingCredentialError(), 401, "Unauthorized. Missing API key!"),
            (UnknownCredentialError(), 401, "Invalid API key"),
            (RouteNotFoundError(), 404, "Endpoint not found"),
            (QuotaExceededError(), 429, "Too many requests, please try again later."),
            (StoreUnavailableError(), 503, "Service temporarily unavailable"),
        ],
    )
    def test_error_maps_to_status_and_message(
        self, client: TestClient, app_with_handlers: FastAPI, error: AppError, status: int, message: str
    ):
        @app_with_handlers.get("/boom")
        async def boom():
            raise error

        response = client.get("/boom")

        assert response.status_code == status
        assert response.json() == {"message": message}

    def test_details_are_not_exposed(self, client: TestClient, app_with_handlers: FastAPI):
        """Structured details are for logs only."""

        @app_with_handlers.get("/missing")
        async def missing():
            raise NotFoundAppError(
                code="quote_not_found",
                message="Quote not found",
                details={"resource": "quote", "store": "records"},
            )

        response = client.get("/missing")

        assert response.status_code == 404
        assert response.json() == {"message": "Quote not found"}

    def test_rate_limit_headers_are_forwarded(self):
        response = error_response(
            QuotaExceededError(headers={"Retry-After": "30", "X-RateLimit-Limit": "5"})
        )

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "30"
        assert response.headers["X-RateLimit-Limit"] == "5"


class TestFrameworkErrors:
    def test_unknown_route_uses_endpoint_not_found_message(self, client: TestClient):
        response = client.get("/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"message": "Endpoint not found"}

    def test_method_not_allowed_keeps_status(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/only-get")
        async def only_get():
            return {}

        response = client.post("/only-get")

        assert response.status_code == 405
        assert "message" in response.json()

    def test_invalid_query_returns_422(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/paged")
        async def paged(page: int = Query(1, ge=1)):
            return {"page": page}

        response = client.get("/paged", params={"page": "zero"})

        assert response.status_code == 422
        assert response.json() == {"message": "Invalid request parameters"}


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_returns_500(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/crash")
        async def crash():
            raise RuntimeError("database connection failed")

        response = client.get("/crash")

        assert response.status_code == 500
        assert "database connection" not in response.text

    def test_general_exception_handler_never_leaks_stack_trace(self):
        """Verify stack traces are never included in response."""
        from animequotes.core.exception_handlers import general_exception_handler

        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = ValueError("Test error with details")
        response = asyncio.run(general_exception_handler(request, exc))

        data = json.loads(bytes(response.body).decode())
        assert response.status_code == 500
        assert set(data) == {"message"}
        assert "Traceback" not in data["message"]
        assert "ValueError" not in data["message"]
        assert "Test error" not in data["message"]


class TestErrorHandlerIntegration:
    """Integration tests for exception handler setup."""

    def test_setup_exception_handlers_registers_handlers(self, app_with_handlers: FastAPI):
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers

    def test_multiple_handler_setups_does_not_fail(self):
        """Verify calling setup_exception_handlers multiple times is safe."""
        app = FastAPI()

        setup_exception_handlers(app)
        setup_exception_handlers(app)

        assert AppError in app.exception_handlers
