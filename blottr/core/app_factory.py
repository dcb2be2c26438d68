from __future__ import annotations

"""Application factory for the FastAPI app.

Centralizes app construction (state, middleware, handlers, routers) so each
call yields an independent app: its own repositories, rate limit counters
and metrics. Tests inject stores and clocks through the keyword arguments.
"""

from fastapi import FastAPI

from blottr.adapters.rate_limit.base import AbstractRateLimitStore
from blottr.adapters.rate_limit.in_memory import InMemoryRateLimitStore
from blottr.adapters.repositories.base import (
    AbstractContactInquiryRepository,
    AbstractUserRepository,
)
from blottr.adapters.repositories.in_memory import (
    InMemoryContactInquiryRepository,
    InMemoryUserRepository,
)
from blottr.api.routes import auth_router, contact_inquiries_router, health_router
from blottr.core.config import AppSettings, settings
from blottr.core.exception_handlers import setup_exception_handlers
from blottr.core.logging import configure_logging
from blottr.core.middleware import MonitoringMiddleware, request_id_middleware
from blottr.core.openapi import apply_openapi_customizations
from blottr.core.rate_limit import RateLimitConfig, RateLimitMiddleware, install_rate_limiter
from blottr.services.contact_inquiry_service import ContactInquiryService
from blottr.services.monitoring_service import MonitoringService


def _default_rate_limit(app_settings: AppSettings) -> RateLimitConfig | None:
    if app_settings.rate_limit_default_max is None:
        return None
    return RateLimitConfig(
        max_requests=app_settings.rate_limit_default_max,
        window_ms=app_settings.rate_limit_default_window_ms,
    )


def create_app(
    *,
    app_settings: AppSettings | None = None,
    rate_limit_store: AbstractRateLimitStore | None = None,
    users: AbstractUserRepository | None = None,
    inquiries: AbstractContactInquiryRepository | None = None,
    monitoring: MonitoringService | None = None,
    configure_logs: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        app_settings: Overrides the global app settings.
        rate_limit_store: Counter store for the rate limiter.
        users: User repository.
        inquiries: Contact inquiry repository.
        monitoring: Metrics collector.
        configure_logs: Configure the root logger from settings.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    if configure_logs:
        configure_logging(settings.log)

    cfg = app_settings or settings.app

    if users is None:
        users = InMemoryUserRepository()
    if inquiries is None:
        inquiries = InMemoryContactInquiryRepository()
    if monitoring is None:
        monitoring = MonitoringService(
            inquiries=inquiries,
            history_size=cfg.metrics_history_size,
            slow_request_threshold_ms=cfg.slow_request_threshold_ms,
        )
    if rate_limit_store is None:
        rate_limit_store = InMemoryRateLimitStore()

    rate_limiter = RateLimitMiddleware(
        rate_limit_store,
        enabled=cfg.rate_limit_enabled,
        default_config=_default_rate_limit(cfg),
        trust_forwarded_for=cfg.rate_limit_trust_forwarded_for,
        include_headers=cfg.rate_limit_include_headers,
    )

    app = FastAPI(
        title="Blottr API",
        description=(
            "API de la marketplace Blottr : inscription et connexion, demandes "
            "de contact aux artistes tatoueurs, supervision. Les routes sensibles "
            "sont limitées en débit par client."
        ),
        version="0.1.0",
        debug=cfg.debug,
    )

    app.state.settings = cfg
    app.state.users = users
    app.state.inquiries = inquiries
    app.state.contact_inquiries = ContactInquiryService(inquiries)
    app.state.monitoring = monitoring

    # Middleware: last registered runs first (request id → monitoring → rate limit)
    install_rate_limiter(app, rate_limiter)
    app.middleware("http")(MonitoringMiddleware(monitoring))
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(auth_router)
    app.include_router(contact_inquiries_router)
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
