"""Password hashing with bcrypt, and the staff API key check.

Stored hashes are standard ``$2b$`` strings, so the cost factor lives in
the hash itself and can be raised without invalidating existing accounts.
bcrypt only reads the first 72 bytes of a password; longer passwords are
refused rather than silently truncated.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from functools import lru_cache
from typing import Annotated

import bcrypt
from fastapi import Header, Request

from blottr.core.config import settings
from blottr.core.errors import AuthenticationAppError
from blottr.core.messages import AUTH_ERRORS

logger = logging.getLogger(__name__)

MAX_PASSWORD_BYTES = 72


def _encode(password: str) -> bytes:
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password longer than {MAX_PASSWORD_BYTES} bytes")
    return encoded


def hash_password(password: str, *, rounds: int | None = None) -> str:
    """Hash a password with a fresh salt.

    Args:
        password: Plain-text password.
        rounds: bcrypt cost factor; defaults to ``APP_BCRYPT_ROUNDS``.

    Raises:
        ValueError: If the password exceeds 72 bytes once UTF-8 encoded.
    """
    salt = bcrypt.gensalt(rounds=rounds or settings.app.bcrypt_rounds)
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


def verify_password(password_hash: str, password: str) -> bool:
    """Check a password against a stored hash.

    Malformed hashes and over-long passwords never match.
    """
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except ValueError:
        return False


@lru_cache(maxsize=1)
def dummy_password_hash() -> str:
    """Hash checked when no account matches, so lookups of unknown emails
    take as long as wrong passwords."""
    return hash_password("dummy-password-for-timing")


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Split a comma-separated key list, dropping blanks."""
    if not keys_string:
        return set()
    return {key.strip() for key in keys_string.split(",") if key.strip()}


def _key_hash(key: str) -> str:
    return hashlib.sha256(key.encode()).hexdigest()[:16]


async def require_staff_api_key(
    request: Request,
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency guarding staff-only endpoints.

    The X-API-Key header must match one of ``APP_STAFF_API_KEYS``. With no
    keys configured every call is refused.

    Usage:
        @router.patch("/contact-inquiries/{id}/status", dependencies=[Depends(require_staff_api_key)])

    Raises:
        AuthenticationAppError: 401 when the key is missing or unknown.
    """

    valid_keys = parse_api_keys(request.app.state.settings.staff_api_keys)

    if not x_api_key or not any(
        hmac.compare_digest(x_api_key.encode(), key.encode()) for key in valid_keys
    ):
        logger.warning(
            "auth.staff_key_rejected",
            extra={
                "reason": "missing_key" if not x_api_key else "invalid_key",
                "api_key_hash": _key_hash(x_api_key) if x_api_key else None,
                "keys_configured": bool(valid_keys),
            },
        )
        raise AuthenticationAppError(
            code="invalid_api_key",
            message=AUTH_ERRORS["INVALID_API_KEY"],
            status_code=401,
        )
