"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any import that might build settings.
"""

import os

os.environ["APP_ENV"] = "testing"
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("LOG_FORMAT", "json")
os.environ.setdefault("APP_BCRYPT_ROUNDS", "4")

from typing import Callable  # noqa: E402

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from blottr.adapters.rate_limit.in_memory import InMemoryRateLimitStore  # noqa: E402
from blottr.adapters.repositories.in_memory import (  # noqa: E402
    InMemoryContactInquiryRepository,
    InMemoryUserRepository,
)
from blottr.core.app_factory import create_app  # noqa: E402
from blottr.core.config import AppSettings  # noqa: E402


class FakeClock:
    """Deterministic millisecond clock for the rate limit store."""

    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


class FakeTime:
    """Deterministic seconds clock for the monitoring service."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_limit_store(clock: FakeClock) -> InMemoryRateLimitStore:
    return InMemoryRateLimitStore(clock=clock)


@pytest.fixture
def users() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def inquiries() -> InMemoryContactInquiryRepository:
    return InMemoryContactInquiryRepository()


@pytest.fixture
def make_app(
    rate_limit_store: InMemoryRateLimitStore,
    users: InMemoryUserRepository,
    inquiries: InMemoryContactInquiryRepository,
) -> Callable[..., FastAPI]:
    """Build an isolated app; keyword arguments override AppSettings fields."""

    def _make(**overrides) -> FastAPI:
        return create_app(
            app_settings=AppSettings(**overrides),
            rate_limit_store=rate_limit_store,
            users=users,
            inquiries=inquiries,
            configure_logs=False,
        )

    return _make


@pytest.fixture
def app(make_app: Callable[..., FastAPI]) -> FastAPI:
    return make_app()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def fake_time() -> FakeTime:
    return FakeTime()
