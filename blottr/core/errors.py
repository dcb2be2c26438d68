"""Application-level exception types.

This module defines domain errors used across services and repositories,
enabling consistent error handling, logging, and API responses.

Throttling has no error type: a rejected request is a normal 429
response produced by the rate limit middleware, not an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    field: str
    inquiry_id: str
    http_status: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
        status_code: Optional HTTP status overriding the per-type default.
    """

    code: str
    message: str
    details: ErrorDetails | None = None
    status_code: int | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input validation fails beyond schema checks."""


class AuthenticationAppError(AppError):
    """Raised when credentials are rejected or an account cannot log in."""


class ConflictAppError(AppError):
    """Raised when a write would violate a uniqueness rule."""


class NotFoundAppError(AppError):
    """Raised when a requested resource does not exist."""
