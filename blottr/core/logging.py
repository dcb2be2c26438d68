"""Structured logging for the Blottr API.

Every record is rendered as one JSON line tagged with the id of the HTTP
request that produced it. Credentials (passwords, password hashes, tokens,
cookies) are replaced by ``[REDACTED]`` wherever they appear in a record's
``extra`` payload, however deeply nested: login and registration payloads
pass through the same loggers as everything else.

Usage:
    configure_logging(settings.log)
    logger.warning("rate_limit.exceeded", extra={"route": "/api/auth/login"})
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Mapping

from blottr.core.config import LogSettings, settings

REDACTED = "[REDACTED]"

SENSITIVE_KEYS_DEFAULT: frozenset[str] = frozenset(
    {
        "password",
        "password_confirmation",
        "password_hash",
        "token",
        "_token",
        "secret",
        "key",
        "api_key",
        "authorization",
        "cookie",
        "set-cookie",
    }
)

# Attributes every LogRecord has; anything else came in through ``extra``
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "taskName",
}

_request_id: ContextVar[str | None] = ContextVar("blottr_request_id", default=None)


def set_request_id(request_id: str | None) -> None:
    _request_id.set(request_id)


def get_request_id() -> str | None:
    """Return the id of the request being served, if any."""
    return _request_id.get()


def clear_request_id() -> None:
    _request_id.set(None)


def redact(value: Any, sensitive_keys: Iterable[str] | None = None) -> Any:
    """Return a copy of ``value`` with sensitive mapping entries masked.

    Mappings, lists and tuples are walked recursively; key matching is
    case-insensitive.

    Args:
        value: Request payload, query params or log context.
        sensitive_keys: Keys to mask; defaults to SENSITIVE_KEYS_DEFAULT.
    """

    keys = (
        SENSITIVE_KEYS_DEFAULT
        if sensitive_keys is None
        else frozenset(k.lower() for k in sensitive_keys)
    )

    if isinstance(value, Mapping):
        return {
            k: REDACTED if str(k).lower() in keys else redact(v, keys)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(redact(v, keys) for v in value)
    return value


def record_extras(record: logging.LogRecord, sensitive_keys: Iterable[str]) -> dict[str, Any]:
    """Collect the ``extra`` fields of a record, redacted."""

    extras = {
        key: value
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }
    return redact(extras, sensitive_keys)


class RequestIdFilter(logging.Filter):
    """Tag records with the current request id unless one was passed."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        if getattr(record, "request_id", None) is None:
            request_id = get_request_id()
            if request_id:
                record.request_id = request_id
        return True


class SensitiveDataFilter(logging.Filter):
    """Mask credentials on the record itself, before any formatter runs.

    Plain-text formatters and third-party handlers only ever see the
    redacted values.
    """

    def __init__(self, sensitive_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.sensitive_keys = frozenset(sensitive_keys or SENSITIVE_KEYS_DEFAULT)

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        for key, value in record_extras(record, self.sensitive_keys).items():
            setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """Render a record as a single JSON object per line.

    Fixed keys come first (timestamp, level, logger, message, request_id),
    followed by the redacted extras and the formatted traceback, if any.
    Non-ASCII text (French messages) is written as-is unless
    ``ensure_ascii`` is set.
    """

    def __init__(
        self,
        *,
        sensitive_keys: Iterable[str] | None = None,
        ensure_ascii: bool = False,
    ) -> None:
        super().__init__()
        self.sensitive_keys = frozenset(sensitive_keys or SENSITIVE_KEYS_DEFAULT)
        self.ensure_ascii = ensure_ascii

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None) or get_request_id()
        if request_id:
            payload["request_id"] = request_id

        payload.update(record_extras(record, self.sensitive_keys))

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, ensure_ascii=self.ensure_ascii)


def _build_handler(log_settings: LogSettings) -> logging.Handler:
    if log_settings.output.lower() != "file":
        return logging.StreamHandler(sys.stdout)

    path = Path(log_settings.file_path or "logs/blottr.log")
    path.parent.mkdir(parents=True, exist_ok=True)
    if not log_settings.max_bytes:
        return logging.FileHandler(path, encoding="utf-8")
    return RotatingFileHandler(
        path,
        maxBytes=log_settings.max_bytes,
        backupCount=log_settings.backup_count,
        encoding="utf-8",
    )


def _build_formatter(log_settings: LogSettings) -> logging.Formatter:
    if log_settings.format.lower() == "plain":
        return logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    return JsonFormatter()


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Install a single redacting handler on the root logger.

    Replaces any existing root handlers, so calling it twice is safe.

    Args:
        log_settings: Defaults to the global ``settings.log``.
    """

    cfg = log_settings or settings.log

    handler = _build_handler(cfg)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(_build_formatter(cfg))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, cfg.level.upper(), logging.INFO))

    # uvicorn installs its own handlers; keep its records off the root one
    for name in ("uvicorn", "uvicorn.access"):
        logging.getLogger(name).propagate = False
