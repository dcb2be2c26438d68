"""Tests for global exception handlers.

Domain errors map to their HTTP status with a consistent JSON body;
unexpected errors become a generic 500 without leaking internals.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from blottr.core.errors import (
    AppError,
    AuthenticationAppError,
    ConflictAppError,
    NotFoundAppError,
    ValidationAppError,
)
from blottr.core.exception_handlers import (
    general_exception_handler,
    setup_exception_handlers,
    status_code_for,
)


@pytest.fixture
def app_with_handlers() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers, raise_server_exceptions=False)


class TestAppErrorHandler:
    @pytest.mark.parametrize(
        "error, expected_status",
        [
            (ValidationAppError(code="bad_input", message="Invalid"), 400),
            (AuthenticationAppError(code="forbidden", message="Nope"), 403),
            (NotFoundAppError(code="contact_inquiry_not_found", message="Missing"), 404),
            (ConflictAppError(code="email_already_exists", message="Taken"), 409),
            (
                AuthenticationAppError(
                    code="invalid_credentials", message="Invalid credentials", status_code=400
                ),
                400,
            ),
        ],
    )
    def test_status_mapping(self, client, app_with_handlers, error, expected_status):
        @app_with_handlers.get("/raise")
        async def endpoint():
            raise error

        response = client.get("/raise")

        assert response.status_code == expected_status
        data = response.json()
        assert data["success"] is False
        assert data["error"]["code"] == error.code
        assert data["error"]["message"] == error.message
        assert "request_id" in data["error"]

    def test_details_included_when_present(self, client, app_with_handlers):
        @app_with_handlers.get("/conflict")
        async def endpoint():
            raise ConflictAppError(
                code="email_already_exists",
                message="Cet email est déjà utilisé",
                details={"field": "email"},
            )

        data = client.get("/conflict").json()

        assert data["error"]["details"] == {"field": "email"}
        assert data["error"]["message"] == "Cet email est déjà utilisé"

    def test_details_omitted_when_absent(self, client, app_with_handlers):
        @app_with_handlers.get("/plain")
        async def endpoint():
            raise ValidationAppError(code="x", message="y")

        assert "details" not in client.get("/plain").json()["error"]

    def test_explicit_status_wins(self):
        assert status_code_for(NotFoundAppError(code="x", message="y", status_code=410)) == 410
        assert status_code_for(AppError(code="x", message="y")) == 400


class TestGeneralExceptionHandler:
    def test_unexpected_exception_returns_generic_500(self, client, app_with_handlers):
        @app_with_handlers.get("/crash")
        async def endpoint():
            raise RuntimeError("database connection failed")

        response = client.get("/crash")

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert data["error"]["code"] == "internal_server_error"
        assert "database connection" not in response.text

    def test_never_leaks_stack_trace(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        response = asyncio.run(general_exception_handler(request, ValueError("secret detail")))

        text = bytes(response.body).decode()
        assert json.loads(text)["error"]["code"] == "internal_server_error"
        assert "Traceback" not in text
        assert "ValueError" not in text
        assert "secret detail" not in text


def test_setup_registers_handlers(app_with_handlers: FastAPI):
    assert AppError in app_with_handlers.exception_handlers
    assert Exception in app_with_handlers.exception_handlers


def test_app_error_keeps_message_as_exception_text():
    error = NotFoundAppError(code="x", message="Contact inquiry not found")

    assert str(error) == "Contact inquiry not found"
