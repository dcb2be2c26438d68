"""HTTP middleware for request correlation and monitoring.

- ``request_id_middleware`` accepts an incoming X-Request-ID header or
  generates a UUID, stores it in contextvars for log correlation and echoes
  it (with the total duration) on the response.
- ``MonitoringMiddleware`` measures each request, feeds the metric to the
  MonitoringService, warns about slow requests and records unhandled errors
  before re-raising them.

Usage:
    app.middleware("http")(MonitoringMiddleware(monitoring))
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import time
import uuid
from typing import Awaitable, Callable

from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from blottr.core.config import settings
from blottr.core.errors import AppError
from blottr.core.exception_handlers import status_code_for
from blottr.core.logging import clear_request_id, get_request_id, redact, set_request_id
from blottr.services.monitoring_service import MonitoringService

CallNext = Callable[[Request], Awaitable[Response]]


async def request_id_middleware(request: Request, call_next: CallNext) -> Response:
    """Generate or propagate a correlation id for the request.

    If the client provides the configured request id header (X-Request-ID by
    default) its value is reused, otherwise a UUID is generated. The id is
    stored in contextvars for the duration of the request and returned in
    the response headers together with X-Request-Duration-ms.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


def error_status_code(exc: BaseException) -> int:
    """Best-effort HTTP status for an exception that escaped the handlers."""

    if isinstance(exc, StarletteHTTPException):
        return exc.status_code
    if isinstance(exc, RequestValidationError):
        return 422
    if isinstance(exc, AppError):
        return status_code_for(exc)
    return 500


class MonitoringMiddleware:
    """Record latency and outcome of every request."""

    def __init__(
        self,
        monitoring: MonitoringService,
        *,
        slow_request_threshold_ms: int | None = None,
        timer: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.monitoring = monitoring
        self.slow_request_threshold_ms = (
            slow_request_threshold_ms
            if slow_request_threshold_ms is not None
            else monitoring.slow_request_threshold_ms
        )
        self._timer = timer

    def _elapsed_ms(self, start: float) -> float:
        return round((self._timer() - start) * 1000, 2)

    def _record(self, request: Request, status_code: int, response_time_ms: float) -> None:
        self.monitoring.record_api_metric(
            endpoint=request.url.path,
            method=request.method,
            response_time_ms=response_time_ms,
            status_code=status_code,
            user_agent=request.headers.get("user-agent"),
            ip_address=request.client.host if request.client else None,
        )

    async def __call__(self, request: Request, call_next: CallNext) -> Response:
        start = self._timer()
        try:
            response = await call_next(request)
        except Exception as exc:
            response_time_ms = self._elapsed_ms(start)
            self._record(request, error_status_code(exc), response_time_ms)
            self.monitoring.log_error(
                exc,
                {
                    "endpoint": request.url.path,
                    "method": request.method,
                    "request_id": get_request_id(),
                    "user_agent": request.headers.get("user-agent"),
                    "ip_address": request.client.host if request.client else None,
                    "query": redact(dict(request.query_params)),
                },
            )
            raise

        response_time_ms = self._elapsed_ms(start)
        self._record(request, response.status_code, response_time_ms)

        if response_time_ms > self.slow_request_threshold_ms:
            self.monitoring.log_warning(
                "monitoring.slow_request",
                {
                    "endpoint": request.url.path,
                    "method": request.method,
                    "response_time_ms": response_time_ms,
                    "request_id": get_request_id(),
                },
            )

        return response
