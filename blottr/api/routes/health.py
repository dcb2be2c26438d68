from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from blottr.api.deps import get_monitoring_service
from blottr.core.rate_limit import RateLimitedRoute
from blottr.schemas.health import HealthCheckResponse
from blottr.services.monitoring_service import MonitoringService

router = APIRouter(tags=["Health"], route_class=RateLimitedRoute)


@router.get("/health")
def health_check() -> dict:
    """Liveness probe.

    Returns:
        dict: A dictionary with a single "status" key set to "ok".
    """

    return {"status": "ok"}


@router.get("/health/details", response_model=HealthCheckResponse)
def health_details(
    response: Response,
    monitoring: Annotated[MonitoringService, Depends(get_monitoring_service)],
) -> HealthCheckResponse:
    """Readiness report built from recent traffic and the inquiry backlog.

    Answers 503 when any check fails so load balancers can take the
    instance out of rotation.
    """

    report = monitoring.get_health_check()
    if report.status == "unhealthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return report
