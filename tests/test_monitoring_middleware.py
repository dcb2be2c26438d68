"""Tests for the monitoring middleware and the health endpoints."""

from __future__ import annotations

from itertools import count

from fastapi import FastAPI
from fastapi.testclient import TestClient

from blottr.core.errors import ValidationAppError
from blottr.core.exception_handlers import setup_exception_handlers
from blottr.core.middleware import MonitoringMiddleware, error_status_code
from blottr.services.monitoring_service import MonitoringService


def _app(monitoring: MonitoringService, **kwargs) -> FastAPI:
    app = FastAPI()
    app.middleware("http")(MonitoringMiddleware(monitoring, **kwargs))
    setup_exception_handlers(app)

    @app.get("/ok")
    async def ok():
        return {"ok": True}

    @app.get("/boom")
    async def boom():
        raise RuntimeError("boom")

    @app.get("/invalid")
    async def invalid():
        raise ValidationAppError(code="bad_input", message="bad")

    return app


def test_records_each_request():
    monitoring = MonitoringService()
    client = TestClient(_app(monitoring))

    client.get("/ok", headers={"User-Agent": "pytest-agent"})
    client.get("/invalid")

    metrics = monitoring.metrics()
    assert [(m.endpoint, m.status_code) for m in metrics] == [("/ok", 200), ("/invalid", 400)]
    assert metrics[0].method == "GET"
    assert metrics[0].user_agent == "pytest-agent"
    assert metrics[0].ip_address == "testclient"


def test_unhandled_error_is_recorded_and_counted():
    monitoring = MonitoringService()
    client = TestClient(_app(monitoring), raise_server_exceptions=False)

    resp = client.get("/boom?password=hunter2")

    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "internal_server_error"
    assert monitoring.metrics()[-1].status_code == 500
    assert monitoring.error_counts() == {"RuntimeError": 1}


def test_unhandled_error_context_is_redacted(caplog):
    monitoring = MonitoringService()
    client = TestClient(_app(monitoring), raise_server_exceptions=False)

    with caplog.at_level("ERROR", logger="blottr.services.monitoring_service"):
        client.get("/boom?password=hunter2&page=2")

    record = next(r for r in caplog.records if r.getMessage() == "monitoring.error")
    assert record.context["query"] == {"password": "[REDACTED]", "page": "2"}


def test_slow_request_logs_warning(caplog):
    ticks = count(step=3)
    monitoring = MonitoringService()
    client = TestClient(
        _app(monitoring, slow_request_threshold_ms=2000, timer=lambda: float(next(ticks)))
    )

    with caplog.at_level("WARNING", logger="blottr.services.monitoring_service"):
        client.get("/ok")

    assert monitoring.metrics()[-1].response_time_ms == 3000
    assert any(r.getMessage() == "monitoring.slow_request" for r in caplog.records)


def test_threshold_defaults_to_service_setting():
    monitoring = MonitoringService(slow_request_threshold_ms=750)

    assert MonitoringMiddleware(monitoring).slow_request_threshold_ms == 750


def test_error_status_code_mapping():
    assert error_status_code(RuntimeError()) == 500
    assert error_status_code(ValidationAppError(code="x", message="y")) == 400
    assert error_status_code(ValidationAppError(code="x", message="y", status_code=418)) == 418


class TestHealthRoutes:
    def test_liveness(self, client: TestClient):
        resp = client.get("/health")

        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_details_report(self, client: TestClient):
        client.get("/health")

        resp = client.get("/health/details")

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert set(data["checks"]) == {"database", "contactInquiries", "apiPerformance", "errorRate"}
        assert "averageResponseTime" in data["metrics"]

    def test_details_returns_503_when_unhealthy(self, app: FastAPI, client: TestClient):
        app.state.monitoring.record_error("boom")
        client.get("/health")

        resp = client.get("/health/details")

        assert resp.status_code == 503
        assert resp.json()["status"] == "unhealthy"

    def test_default_rule_covers_unmarked_routes(self, make_app):
        client = TestClient(make_app(rate_limit_default_max=2, rate_limit_default_window_ms=60_000))

        assert client.get("/health").headers["X-RateLimit-Limit"] == "2"
        client.get("/health")

        assert client.get("/health").status_code == 429
