"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from blottr.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    redact,
    set_request_id,
)


@pytest.fixture
def log_stream():
    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers.clear()
    clear_request_id()


def test_redacts_credentials(log_stream):
    logger, stream = log_stream

    logger.info(
        "auth_event",
        extra={
            "password": "Secret123",
            "authorization": "Bearer abc",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()
    assert "Secret123" not in output
    assert "Bearer abc" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_redacts_nested_dicts(log_stream):
    logger, stream = log_stream

    logger.info(
        "nested_event",
        extra={
            "payload": {"email": "ink@example.com", "password": "Secret123"},
            "headers": {"cookie": "session=1", "user-agent": "pytest"},
        },
    )

    data = json.loads(stream.getvalue())
    assert data["payload"] == {"email": "ink@example.com", "password": "[REDACTED]"}
    assert data["headers"]["cookie"] == "[REDACTED]"
    assert data["headers"]["user-agent"] == "pytest"


def test_safe_fields_pass_through(log_stream):
    logger, stream = log_stream

    logger.info(
        "rate_limit.exceeded",
        extra={"route": "/api/auth/login", "limit": 10, "retry_after_s": 900},
    )

    data = json.loads(stream.getvalue())
    assert data["message"] == "rate_limit.exceeded"
    assert data["route"] == "/api/auth/login"
    assert data["limit"] == 10
    assert "[REDACTED]" not in stream.getvalue()


def test_request_id_attached_from_context(log_stream):
    logger, stream = log_stream
    set_request_id("req-123")

    logger.info("with_context")

    assert json.loads(stream.getvalue())["request_id"] == "req-123"


def test_non_ascii_kept_readable(log_stream):
    logger, stream = log_stream

    logger.info("inquiry", extra={"subject": "Demande rapide, priorité élevée"})

    assert "priorité élevée" in stream.getvalue()


def test_redact_handles_lists_and_custom_keys():
    value = {"items": [{"token": "t"}, {"ok": 1}], "pin": "1234"}

    assert redact(value) == {"items": [{"token": "[REDACTED]"}, {"ok": 1}], "pin": "1234"}
    assert redact(value, sensitive_keys={"pin"})["pin"] == "[REDACTED]"
