"""Pydantic schemas for registration and login."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

from blottr.core.messages import VALIDATION_ERRORS
from blottr.core.security import MAX_PASSWORD_BYTES
from blottr.schemas.common import CamelModel

_PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d).+$")


def _normalize_email(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


class LoginRequest(BaseModel):
    """Credentials submitted to the login endpoint."""

    email: EmailStr = Field(..., description="Account email (case-insensitive).")
    password: str = Field(..., min_length=8, description="Account password.")

    normalize_email = field_validator("email", mode="before")(_normalize_email)


class RegisterRequest(BaseModel):
    """Payload for creating a new account."""

    email: EmailStr = Field(..., description="Account email, must be unique.")
    password: str = Field(
        ...,
        description=(
            "At least 8 characters, with one lowercase letter, one uppercase "
            "letter and one digit, at most 72 bytes."
        ),
    )
    role: Literal["client", "artist"] = Field(
        "client",
        description="Account type.",
    )

    normalize_email = field_validator("email", mode="before")(_normalize_email)

    @field_validator("password")
    @classmethod
    def check_password_strength(cls, value: str) -> str:
        if len(value) < 8:
            raise ValueError(VALIDATION_ERRORS["PASSWORD_MIN_LENGTH"])
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(VALIDATION_ERRORS["PASSWORD_MAX_LENGTH"])
        if not _PASSWORD_PATTERN.match(value):
            raise ValueError(VALIDATION_ERRORS["PASSWORD_PATTERN"])
        return value


class UserSummary(CamelModel):
    user_id: int
    email: str
    role: Literal["client", "artist"]
    last_login_at: datetime | None = None


class AuthResponse(CamelModel):
    """Response for successful registration or login."""

    success: bool = True
    message: str
    user: UserSummary
