"""Pydantic schemas for health and monitoring responses."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from blottr.schemas.common import CamelModel

CheckStatus = Literal["pass", "warn", "fail"]
OverallStatus = Literal["healthy", "degraded", "unhealthy"]


class HealthStatus(CamelModel):
    """Result of a single health check."""

    status: CheckStatus
    message: str
    duration_ms: float | None = None
    details: dict[str, Any] | None = None


class SystemMetrics(CamelModel):
    total_inquiries: int = 0
    pending_inquiries: int = 0
    average_response_time: int = Field(
        0, description="Average response time in ms over the recent window."
    )
    error_rate: float = Field(0.0, description="Errors per request, rounded to 2 decimals.")


class HealthCheckResponse(CamelModel):
    """Aggregated service health.

    ``status`` is ``unhealthy`` when any check fails, ``degraded`` when any
    check warns, ``healthy`` otherwise.
    """

    status: OverallStatus
    timestamp: str
    checks: dict[str, HealthStatus]
    metrics: SystemMetrics
