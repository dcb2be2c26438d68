"""Per-route rate limiting for the HTTP layer.

Routes opt in at registration time with a marker dependency carrying their
quota as ordered ``(max, window_ms)`` arguments::

    router = APIRouter(route_class=RateLimitedRoute)

    @router.post("/auth/login", dependencies=[Depends(rate_limit("10", "900000"))])

``RateLimitedRoute`` reads the marker when the route is built and wraps the
route's own handler, so enforcement does not depend on how routers are
nested or included. ``RateLimitMiddleware`` owns the store and the
admission logic:

- Key: ``"<client ip>:<route pattern>"`` (raw path when no route matched).
- Admission reserves quota before the handler runs.
- Rejections are a normal 429 JSON response, never an exception.
- Admitted responses carry X-RateLimit-Limit/Remaining/Reset headers.
- Skip flags refund the reservation after the fact based on the outcome.
"""

from __future__ import annotations

import hashlib
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Sequence

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.routing import BaseRoute

from blottr.adapters.rate_limit.base import AbstractRateLimitStore, RateLimitResult
from blottr.core.messages import RATE_LIMIT_ERRORS
from blottr.core.openapi import RATE_LIMITED_RESPONSE

logger = logging.getLogger(__name__)

DEFAULT_MAX_REQUESTS = 100
DEFAULT_WINDOW_MS = 15 * 60 * 1000

# Set on the ASGI scope by every RateLimitedRoute that serves a request
ROUTE_SCOPE_KEY = "blottr.rate_limit.route"

CallNext = Callable[[Request], Awaitable[Response]]


@dataclass(frozen=True)
class RateLimitConfig:
    """Quota applied to one route.

    Attributes:
        max_requests: Maximum admitted requests per window.
        window_ms: Window length in milliseconds.
        skip_successful_requests: Refund quota for responses below 400.
        skip_failed_requests: Refund quota for responses of 400 and above,
            and for requests whose handler raised.
    """

    max_requests: int = DEFAULT_MAX_REQUESTS
    window_ms: int = DEFAULT_WINDOW_MS
    skip_successful_requests: bool = False
    skip_failed_requests: bool = False

    def __post_init__(self) -> None:
        if self.max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if self.window_ms < 1:
            raise ValueError("window_ms must be >= 1")

    def should_refund(self, status_code: int) -> bool:
        if status_code >= 400:
            return self.skip_failed_requests
        return self.skip_successful_requests


def _parse_positive_int(value: str | int, name: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    try:
        parsed = int(str(value).strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc
    if parsed < 1:
        raise ValueError(f"{name} must be >= 1, got {parsed}")
    return parsed


def parse_rate_limit_options(
    options: Sequence[str | int | None],
    *,
    skip_successful_requests: bool = False,
    skip_failed_requests: bool = False,
) -> RateLimitConfig:
    """Build a config from ordered route arguments ``(max, window_ms)``.

    Missing or empty arguments fall back to the defaults (100 requests per
    15 minutes).

    Raises:
        ValueError: On extra arguments or values that are not positive integers.
    """

    if len(options) > 2:
        raise ValueError(f"expected at most 2 options (max, window_ms), got {len(options)}")

    max_opt = options[0] if len(options) > 0 else None
    window_opt = options[1] if len(options) > 1 else None

    return RateLimitConfig(
        max_requests=(
            _parse_positive_int(max_opt, "max")
            if max_opt not in (None, "")
            else DEFAULT_MAX_REQUESTS
        ),
        window_ms=(
            _parse_positive_int(window_opt, "window_ms")
            if window_opt not in (None, "")
            else DEFAULT_WINDOW_MS
        ),
        skip_successful_requests=skip_successful_requests,
        skip_failed_requests=skip_failed_requests,
    )


class RateLimitRule:
    """Marker dependency declaring a route's quota.

    It does nothing when FastAPI resolves it; ``RateLimitedRoute`` finds it
    among the route's dependencies and enforces the config.
    """

    def __init__(self, config: RateLimitConfig) -> None:
        self.config = config

    async def __call__(self) -> None:
        return None

    def __repr__(self) -> str:
        return f"RateLimitRule({self.config!r})"


def rate_limit(
    *options: str | int | None,
    skip_successful_requests: bool = False,
    skip_failed_requests: bool = False,
) -> RateLimitRule:
    """Declare a rate limit for a route.

    Usage:
        @router.post("/auth/register", dependencies=[Depends(rate_limit("5", "900000"))])

    Args:
        options: Ordered ``max`` and ``window_ms`` values (strings or ints).
        skip_successful_requests: Do not count requests answered below 400.
        skip_failed_requests: Do not count requests answered with 400+ or
            whose handler raised.

    Returns:
        RateLimitRule to pass to ``Depends``.
    """

    return RateLimitRule(
        parse_rate_limit_options(
            options,
            skip_successful_requests=skip_successful_requests,
            skip_failed_requests=skip_failed_requests,
        )
    )


def _rule_from_dependencies(dependencies: Sequence[Any] | None) -> RateLimitRule | None:
    for dependency in dependencies or []:
        if isinstance(getattr(dependency, "dependency", None), RateLimitRule):
            return dependency.dependency
    return None


def find_route_rule(route: BaseRoute) -> RateLimitRule | None:
    """Return the rate limit marker declared on a route, if any."""

    rule = getattr(route, "rate_limit_rule", None)
    if rule is not None:
        return rule
    return _rule_from_dependencies(getattr(route, "dependencies", None))


class RateLimitedRoute(APIRoute):
    """APIRoute that runs its handler through the app's rate limiter.

    The limiter is looked up on ``app.state.rate_limiter`` per request, so a
    route built once can serve apps with different stores. A declared
    ``rate_limit`` marker also documents the 429 response and the quota
    (``x-rate-limit``) on the OpenAPI operation.
    """

    def __init__(self, path: str, endpoint: Callable[..., Any], **kwargs: Any) -> None:
        rule = _rule_from_dependencies(kwargs.get("dependencies"))
        if rule is not None:
            kwargs["responses"] = {
                **(kwargs.get("responses") or {}),
                status.HTTP_429_TOO_MANY_REQUESTS: RATE_LIMITED_RESPONSE,
            }
            kwargs["openapi_extra"] = {
                **(kwargs.get("openapi_extra") or {}),
                "x-rate-limit": {
                    "max": rule.config.max_requests,
                    "windowMs": rule.config.window_ms,
                },
            }
        # APIRoute.__init__ builds the handler, which reads the rule
        self.rate_limit_rule = rule
        super().__init__(path, endpoint, **kwargs)

    def get_route_handler(self) -> Callable[[Request], Awaitable[Response]]:
        handler = super().get_route_handler()

        async def rate_limited_handler(request: Request) -> Response:
            request.scope[ROUTE_SCOPE_KEY] = True
            limiter: RateLimitMiddleware | None = getattr(
                request.app.state, "rate_limiter", None
            )
            if limiter is None:
                return await handler(request)
            return await limiter.handle_route(
                request,
                handler,
                self.rate_limit_rule,
                route_pattern=self.path_format,
            )

        return rate_limited_handler


def install_rate_limiter(app: FastAPI, limiter: RateLimitMiddleware) -> None:
    """Attach ``limiter`` to ``app``.

    Routes declared on the app afterwards use ``RateLimitedRoute``; routers
    must pass ``route_class=RateLimitedRoute`` themselves. Register this
    before any other HTTP middleware so it runs innermost.
    """

    app.state.rate_limiter = limiter
    app.router.route_class = RateLimitedRoute
    app.middleware("http")(limiter)


def build_rate_limit_key(client_id: str, route_pattern: str) -> str:
    return f"{client_id}:{route_pattern}"


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing client addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


async def _handled_error_response(request: Request, exc: Exception) -> Response | None:
    """Render ``exc`` with the app's exception handler for its type.

    The catch-all ``Exception`` handler is skipped: unexpected errors keep
    propagating to the server error middleware.
    """

    handlers = getattr(request.app, "exception_handlers", None) or {}
    for cls in type(exc).__mro__:
        if cls in (Exception, BaseException):
            return None
        handler = handlers.get(cls)
        if handler is not None:
            response = handler(request, exc)
            if inspect.isawaitable(response):
                response = await response
            return response
    return None


class RateLimitMiddleware:
    """Per-route, per-client request quotas.

    Holds the counter store and runs admission for ``RateLimitedRoute``
    handlers. Registered as HTTP middleware it also applies the default rule
    to requests no rate-limited route served (unmatched paths, 405s).
    Those responses involve no endpoint, so they are counted once ready and
    swapped for a 429 when over quota.

    The middleware owns nothing global: the counter store is injected so
    tests and app instances get independent state.

    Usage:
        install_rate_limiter(app, RateLimitMiddleware(InMemoryRateLimitStore()))
    """

    def __init__(
        self,
        store: AbstractRateLimitStore,
        *,
        enabled: bool = True,
        default_config: RateLimitConfig | None = None,
        trust_forwarded_for: bool = False,
        include_headers: bool = True,
    ) -> None:
        """Initialize the middleware.

        Args:
            store: Counter store shared by all requests of this app.
            enabled: When False, every request passes through untouched.
            default_config: Quota for requests whose route declares none.
                None leaves such requests unlimited.
            trust_forwarded_for: Identify clients by X-Forwarded-For.
            include_headers: Add Retry-After and X-RateLimit-* headers on 429.
        """
        self.store = store
        self.enabled = enabled
        self.default_config = default_config
        self.trust_forwarded_for = trust_forwarded_for
        self.include_headers = include_headers

    async def __call__(self, request: Request, call_next: CallNext) -> Response:
        if not self.enabled or self.default_config is None:
            return await call_next(request)

        response = await call_next(request)
        if request.scope.get(ROUTE_SCOPE_KEY):
            return response

        key = build_rate_limit_key(self.client_identifier(request), request.url.path)
        result = self._consume(key, self.default_config, request.url.path)
        if not result.allowed:
            return self._reject(result)
        self._apply_headers(response, result)
        return response

    async def handle_route(
        self,
        request: Request,
        handler: CallNext,
        rule: RateLimitRule | None,
        *,
        route_pattern: str | None = None,
    ) -> Response:
        """Run a route handler under its own rule, or the default rule."""

        config = rule.config if rule is not None else self.default_config
        if not self.enabled or config is None:
            return await handler(request)
        return await self.handle(request, handler, config, route_pattern=route_pattern)

    def client_identifier(self, request: Request) -> str:
        if self.trust_forwarded_for:
            forwarded = request.headers.get("x-forwarded-for")
            if forwarded:
                first = forwarded.split(",")[0].strip()
                if first:
                    return first
        return request.client.host if request.client else "unknown"

    async def handle(
        self,
        request: Request,
        call_next: CallNext,
        config: RateLimitConfig,
        *,
        route_pattern: str | None = None,
    ) -> Response:
        """Admit or reject one request, then account for its outcome.

        Errors the app has a handler for (HTTPException, AppError, request
        validation) are rendered here so their status decides the refund
        and the response carries the rate limit headers. Any other exception
        or a cancellation counts as a failure and is re-raised; the 500
        built further out by the server error middleware has no rate limit
        headers.

        Args:
            request: Incoming request.
            call_next: Downstream handler.
            config: Quota for this route.
            route_pattern: Registered route path; the raw path is used when None.

        Returns:
            The downstream response (with rate limit headers) or a 429 response.
        """

        route = route_pattern or request.url.path
        key = build_rate_limit_key(self.client_identifier(request), route)
        result = self._consume(key, config, route)
        if not result.allowed:
            return self._reject(result)

        try:
            response = await call_next(request)
        except Exception as exc:
            response = await _handled_error_response(request, exc)
            if response is None:
                if config.skip_failed_requests:
                    self.store.refund(key, reset_time=result.reset_time)
                raise
        except BaseException:
            # Cancelled: the outcome is a failure.
            if config.skip_failed_requests:
                self.store.refund(key, reset_time=result.reset_time)
            raise

        self._apply_headers(response, result)

        if config.should_refund(response.status_code):
            self.store.refund(key, reset_time=result.reset_time)

        return response

    def _consume(self, key: str, config: RateLimitConfig, route: str) -> RateLimitResult:
        result = self.store.consume(
            key,
            max_requests=config.max_requests,
            window_ms=config.window_ms,
        )
        if not result.allowed:
            logger.warning(
                "rate_limit.exceeded",
                extra={
                    "key_hash": _hash_limiter_key(key),
                    "route": route,
                    "limit": result.limit,
                    "window_ms": config.window_ms,
                    "retry_after_s": result.retry_after_seconds,
                },
            )
        else:
            logger.debug(
                "rate_limit.allowed",
                extra={
                    "key_hash": _hash_limiter_key(key),
                    "route": route,
                    "limit": result.limit,
                    "remaining": result.remaining,
                },
            )
        return result

    @staticmethod
    def _apply_headers(response: Response, result: RateLimitResult) -> None:
        response.headers["X-RateLimit-Limit"] = str(result.limit)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)
        response.headers["X-RateLimit-Reset"] = str(result.reset_at)

    def _reject(self, result: RateLimitResult) -> JSONResponse:
        retry_after = result.retry_after_seconds or 0
        headers: dict[str, str] = {}
        if self.include_headers:
            headers["Retry-After"] = str(retry_after)
            headers["X-RateLimit-Limit"] = str(result.limit)
            headers["X-RateLimit-Remaining"] = str(result.remaining)
            headers["X-RateLimit-Reset"] = str(result.reset_at)

        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={
                "success": False,
                "message": RATE_LIMIT_ERRORS["TOO_MANY_REQUESTS"],
                "retryAfter": retry_after,
            },
            headers=headers or None,
        )
