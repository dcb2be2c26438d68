"""Blottr settings, read from the environment with Pydantic Settings.

Three groups, each with its own prefix:
- ``LOG_*``: log level, format and destination
- ``APP_*``: rate limiting and monitoring thresholds
- ``APP_ENV``: selects the optional ``.env.{APP_ENV}`` file at the project
  root (development, testing, staging, production)

Variables already set in the process environment are overridden by the
file, so a developer's ``.env.development`` wins over stale shell exports.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENVIRONMENTS = ("development", "testing", "staging", "production")

APP_ENV = os.getenv("APP_ENV", "development")

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def env_file_for(app_env: str) -> Path | None:
    """Return the dotenv file for an environment, or None if absent.

    Unknown environments fall back to development.
    """
    name = app_env if app_env in ENVIRONMENTS else "development"
    path = PROJECT_ROOT / f".env.{name}"
    return path if path.is_file() else None


# Nested BaseSettings don't read env_file themselves, so load it up front
_env_file = env_file_for(APP_ENV)
if _env_file is not None:
    load_dotenv(_env_file, override=True)


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    # BaseSettings reads its fields from the environment; type checkers
    # see them as required constructor arguments.
    return AppSettings()  # type: ignore[call-arg]


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field(
        "INFO",
        description="Root log level (DEBUG, INFO, WARNING, ERROR)",
    )
    format: str = Field(
        "json",
        description="Log format: 'json' for machine-friendly output or 'plain'",
    )
    output: str = Field(
        "stdout",
        description="Log destination: 'stdout' or 'file'",
    )
    file_path: str | None = Field(
        None,
        description="Path of the log file when output is 'file'",
    )
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(
        5,
        description="Number of rotated log files to keep",
        ge=0,
    )
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-route rate limiting",
    )
    rate_limit_default_max: int | None = Field(
        None,
        description=(
            "When set, every route without its own rate limit rule is limited "
            "to this many requests per window"
        ),
        ge=1,
    )
    rate_limit_default_window_ms: int = Field(
        15 * 60 * 1000,
        description="Window length in milliseconds for the default rule",
        ge=1,
    )
    rate_limit_trust_forwarded_for: bool = Field(
        False,
        description="Identify clients by the first X-Forwarded-For address (behind a proxy)",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include Retry-After and X-RateLimit-* headers on 429 responses",
    )

    bcrypt_rounds: int = Field(
        12,
        description="bcrypt cost factor for new password hashes",
        ge=4,
        le=31,
    )
    staff_api_keys: str | None = Field(
        None,
        description=(
            "Comma-separated keys accepted in X-API-Key on staff endpoints "
            "(inquiry status updates). Unset refuses every call"
        ),
    )

    slow_request_threshold_ms: int = Field(
        2000,
        description="Requests slower than this are logged as slow",
        ge=1,
    )
    metrics_history_size: int = Field(
        1000,
        description="Number of API metrics kept in memory for health checks",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """All settings groups. Invalid values fail at import time."""

    app_env: str = APP_ENV
    log: LogSettings = Field(default_factory=_build_log_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
