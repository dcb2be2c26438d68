"""In-process API monitoring and health reporting.

Collects per-request metrics from the monitoring middleware, counts errors
by code, and derives a health report from recent traffic and the inquiry
backlog. Everything lives in memory and is scoped to one service instance.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import Counter, deque
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from blottr.adapters.repositories.base import AbstractContactInquiryRepository
from blottr.models.contact_inquiry import InquiryStatus
from blottr.schemas.health import HealthCheckResponse, HealthStatus, SystemMetrics

logger = logging.getLogger(__name__)

RECENT_WINDOW_SECONDS = 5 * 60
SLOW_AVERAGE_MS = 1500
SLOW_REQUEST_RATE = 0.1
ERROR_RATE_FAIL = 0.1
ERROR_RATE_WARN = 0.05
SLOW_STORAGE_MS = 1000
STALE_PENDING_HOURS = 24
STALE_PENDING_WARN = 10


@dataclass(frozen=True)
class ApiMetric:
    """One observed request."""

    endpoint: str
    method: str
    response_time_ms: float
    status_code: int
    timestamp: float
    user_agent: str | None = None
    ip_address: str | None = None


class MonitoringService:
    """Thread-safe metrics collector with health checks.

    Attributes:
        slow_request_threshold_ms: Requests slower than this count as slow.
        history_size: Number of metrics retained (oldest dropped first).
    """

    def __init__(
        self,
        *,
        inquiries: AbstractContactInquiryRepository | None = None,
        history_size: int = 1000,
        slow_request_threshold_ms: int = 2000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if history_size < 1:
            raise ValueError("history_size must be >= 1")

        self._inquiries = inquiries
        self.history_size = history_size
        self.slow_request_threshold_ms = slow_request_threshold_ms
        self._clock = clock
        self._lock = threading.RLock()
        self._metrics: deque[ApiMetric] = deque(maxlen=history_size)
        self._error_counts: Counter[str] = Counter()
        # Sequence number of the last recorded metric; each error is tagged
        # with it and expires together with that metric.
        self._seq = 0
        self._error_seqs: deque[int] = deque(maxlen=history_size)

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"MonitoringService(history_size={self.history_size}, "
            f"metrics={len(self._metrics)}, errors={sum(self._error_counts.values())})"
        )

    def record_api_metric(
        self,
        *,
        endpoint: str,
        method: str,
        response_time_ms: float,
        status_code: int,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> ApiMetric:
        """Store a request metric, evicting the oldest beyond history_size."""

        metric = ApiMetric(
            endpoint=endpoint,
            method=method,
            response_time_ms=response_time_ms,
            status_code=status_code,
            timestamp=self._clock(),
            user_agent=user_agent,
            ip_address=ip_address,
        )
        with self._lock:
            if len(self._metrics) == self.history_size:
                evicted_seq = self._seq - self.history_size + 1
                while self._error_seqs and self._error_seqs[0] <= evicted_seq:
                    self._error_seqs.popleft()
            self._seq += 1
            self._metrics.append(metric)
        return metric

    def record_error(self, error_code: str) -> None:
        """Count an error by code, for the all-time totals and for the error
        rate over the retained metrics."""
        with self._lock:
            self._error_counts[error_code] += 1
            self._error_seqs.append(self._seq)

    def log_error(self, error: BaseException | str, context: dict[str, Any] | None = None) -> None:
        """Log an application error and count it by code.

        The code is the error's ``code`` attribute when present, else its
        class name.
        """

        if isinstance(error, BaseException):
            error_code = str(getattr(error, "code", None) or type(error).__name__)
            message = str(error)
        else:
            error_code = "UnknownError"
            message = error

        logger.error(
            "monitoring.error",
            extra={
                "error_code": error_code,
                "error_msg": message,
                "context": context or {},
            },
            exc_info=error if isinstance(error, BaseException) else None,
        )
        self.record_error(error_code)

    def log_warning(self, message: str, context: dict[str, Any] | None = None) -> None:
        logger.warning(message, extra={"context": context or {}})

    def log_info(self, message: str, context: dict[str, Any] | None = None) -> None:
        logger.info(message, extra={"context": context or {}})

    def metrics(self) -> list[ApiMetric]:
        with self._lock:
            return list(self._metrics)

    def error_counts(self) -> dict[str, int]:
        with self._lock:
            return dict(self._error_counts)

    def reset(self) -> None:
        with self._lock:
            self._metrics.clear()
            self._error_counts.clear()
            self._error_seqs.clear()
            self._seq = 0

    def _recent_metrics(self, now: float) -> list[ApiMetric]:
        cutoff = now - RECENT_WINDOW_SECONDS
        return [m for m in self.metrics() if m.timestamp > cutoff]

    def _error_rate(self) -> tuple[float, int, int]:
        with self._lock:
            total_errors = len(self._error_seqs)
            total_requests = len(self._metrics)
        rate = total_errors / total_requests if total_requests else 0.0
        return rate, total_errors, total_requests

    def check_storage(self) -> HealthStatus:
        if self._inquiries is None:
            return HealthStatus(status="pass", message="No storage configured")

        start = time.perf_counter()
        try:
            self._inquiries.count()
        except Exception as exc:
            logger.exception("monitoring.storage_check_failed")
            return HealthStatus(
                status="fail",
                message="Storage connection failed",
                details={"error": str(exc)},
            )
        duration_ms = round((time.perf_counter() - start) * 1000, 2)

        if duration_ms > SLOW_STORAGE_MS:
            return HealthStatus(
                status="warn",
                message="Storage response time is slow",
                duration_ms=duration_ms,
            )
        return HealthStatus(
            status="pass",
            message="Storage connection healthy",
            duration_ms=duration_ms,
        )

    def check_contact_inquiries(self, now: float) -> HealthStatus:
        if self._inquiries is None:
            return HealthStatus(status="pass", message="No inquiry storage configured")

        now_dt = datetime.fromtimestamp(now, tz=timezone.utc)
        cutoff = now_dt - timedelta(hours=STALE_PENDING_HOURS)
        try:
            total_recent = self._inquiries.count(created_since=cutoff)
            old_pending = self._inquiries.count_pending_older_than(cutoff)
        except Exception as exc:
            logger.exception("monitoring.inquiry_check_failed")
            return HealthStatus(
                status="fail",
                message="Failed to check contact inquiry status",
                details={"error": str(exc)},
            )

        details = {"totalRecent": total_recent, "oldPending": old_pending}
        if old_pending > STALE_PENDING_WARN:
            return HealthStatus(
                status="warn",
                message=f"{old_pending} inquiries pending for over {STALE_PENDING_HOURS} hours",
                details=details,
            )
        return HealthStatus(
            status="pass",
            message="Contact inquiry system operating normally",
            details=details,
        )

    def check_api_performance(self, now: float) -> HealthStatus:
        recent = self._recent_metrics(now)
        if not recent:
            return HealthStatus(status="pass", message="No recent API activity to analyze")

        avg = sum(m.response_time_ms for m in recent) / len(recent)
        slow = sum(1 for m in recent if m.response_time_ms > self.slow_request_threshold_ms)
        slow_rate = slow / len(recent)
        details = {"avgResponseTime": round(avg), "slowRequestRate": slow_rate}

        if avg > SLOW_AVERAGE_MS:
            return HealthStatus(
                status="warn",
                message=f"Average API response time is {round(avg)}ms",
                details=details,
            )
        if slow_rate > SLOW_REQUEST_RATE:
            return HealthStatus(
                status="warn",
                message=(
                    f"{round(slow_rate * 100)}% of requests are slow "
                    f"(>{self.slow_request_threshold_ms}ms)"
                ),
                details=details,
            )
        return HealthStatus(
            status="pass",
            message=f"API performance is good (avg: {round(avg)}ms)",
            details=details,
        )

    def check_error_rate(self) -> HealthStatus:
        rate, total_errors, total_requests = self._error_rate()
        if total_requests == 0:
            return HealthStatus(status="pass", message="No recent requests to analyze")

        details = {
            "errorRate": rate,
            "totalErrors": total_errors,
            "totalRequests": total_requests,
        }
        if rate > ERROR_RATE_FAIL:
            return HealthStatus(
                status="fail",
                message=f"High error rate: {round(rate * 100)}%",
                details=details,
            )
        if rate > ERROR_RATE_WARN:
            return HealthStatus(
                status="warn",
                message=f"Elevated error rate: {round(rate * 100)}%",
                details=details,
            )
        return HealthStatus(
            status="pass",
            message=f"Error rate is healthy: {round(rate * 100)}%",
            details=details,
        )

    def system_metrics(self, now: float) -> SystemMetrics:
        recent = self._recent_metrics(now)
        avg = sum(m.response_time_ms for m in recent) / len(recent) if recent else 0
        rate, _, _ = self._error_rate()

        total_inquiries = pending_inquiries = 0
        if self._inquiries is not None:
            try:
                total_inquiries = self._inquiries.count()
                pending_inquiries = self._inquiries.count(status=InquiryStatus.PENDING)
            except Exception:
                # Already reported as a failed check; keep the report renderable.
                logger.exception("monitoring.metrics_unavailable")

        return SystemMetrics(
            total_inquiries=total_inquiries,
            pending_inquiries=pending_inquiries,
            average_response_time=round(avg),
            error_rate=round(rate, 2),
        )

    def get_health_check(self) -> HealthCheckResponse:
        """Run all checks and aggregate them into an overall status."""

        now = self._clock()
        checks = {
            "database": self.check_storage(),
            "contactInquiries": self.check_contact_inquiries(now),
            "apiPerformance": self.check_api_performance(now),
            "errorRate": self.check_error_rate(),
        }

        statuses = {check.status for check in checks.values()}
        if "fail" in statuses:
            overall = "unhealthy"
        elif "warn" in statuses:
            overall = "degraded"
        else:
            overall = "healthy"

        return HealthCheckResponse(
            status=overall,
            timestamp=datetime.fromtimestamp(now, tz=timezone.utc).isoformat(),
            checks=checks,
            metrics=self.system_metrics(now),
        )
