"""Authentication use cases: register and log in users.

Each use case validates business rules, persists through the user
repository and returns a plain DTO so the HTTP layer never touches the
stored model (or its password hash).
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from blottr.adapters.repositories.base import AbstractUserRepository
from blottr.core.errors import AuthenticationAppError
from blottr.core.messages import AUTH_ERRORS
from blottr.core.security import dummy_password_hash, hash_password, verify_password
from blottr.models.user import User, UserRole

logger = logging.getLogger(__name__)

RoleName = Literal["client", "artist"]


def _email_hash(email: str) -> str:
    return hashlib.sha256(email.encode()).hexdigest()[:16]


def role_name(role: UserRole) -> RoleName:
    return "artist" if role == UserRole.ARTIST else "client"


def _password_matches(user: User | None, password: str) -> bool:
    if user is None:
        # Same bcrypt cost as a wrong password, so timing does not reveal the account
        verify_password(dummy_password_hash(), password)
        return False
    return verify_password(user.password_hash, password)


@dataclass(frozen=True)
class RegisterUserInput:
    email: str
    password: str
    role: RoleName = "client"


@dataclass(frozen=True)
class RegisterUserOutput:
    user_id: int
    email: str
    role: UserRole


@dataclass(frozen=True)
class LoginUserInput:
    email: str
    password: str


@dataclass(frozen=True)
class LoginUserOutput:
    user_id: int
    email: str
    role: UserRole
    last_login_at: datetime | None


class RegisterUserUseCase:
    """Create a new account.

    Business rules:
    - Email must be unique (enforced by the repository, raises ConflictAppError)
    - Password is stored as a bcrypt hash, never in clear
    - The account starts active, with email and phone unverified
    """

    def __init__(self, users: AbstractUserRepository) -> None:
        self._users = users

    async def execute(self, data: RegisterUserInput) -> RegisterUserOutput:
        role = UserRole.ARTIST if data.role == "artist" else UserRole.CLIENT
        # bcrypt is CPU-bound; keep it off the event loop
        password_hash = await asyncio.get_running_loop().run_in_executor(
            None, hash_password, data.password
        )

        user = self._users.add(
            User(
                email=data.email,
                password_hash=password_hash,
                role=role,
                is_active=True,
                email_verified=False,
                phone_verified=False,
            )
        )

        logger.info(
            "auth.registered",
            extra={"user_id": user.id, "role": role_name(user.role)},
        )

        return RegisterUserOutput(user_id=user.id, email=user.email, role=user.role)


class LoginUserUseCase:
    """Authenticate an existing account.

    Business rules:
    - Unknown email and wrong password fail identically (no account probing)
    - Deactivated accounts are refused even with the right password
    - A successful login updates ``last_login_at``

    Raises:
        AuthenticationAppError: ``invalid_credentials`` (400) or
            ``account_deactivated`` (403).
    """

    def __init__(self, users: AbstractUserRepository) -> None:
        self._users = users

    async def execute(self, data: LoginUserInput) -> LoginUserOutput:
        user = self._users.get_by_email(data.email)
        password_ok = await asyncio.get_running_loop().run_in_executor(
            None, _password_matches, user, data.password
        )

        if user is None or not password_ok:
            logger.warning(
                "auth.login_failed",
                extra={
                    "reason": "invalid_credentials",
                    "email_hash": _email_hash(data.email.lower()),
                },
            )
            raise AuthenticationAppError(
                code="invalid_credentials",
                message=AUTH_ERRORS["INVALID_CREDENTIALS"],
                status_code=400,
            )

        if not user.is_active:
            logger.warning(
                "auth.login_failed",
                extra={"reason": "account_deactivated", "user_id": user.id},
            )
            raise AuthenticationAppError(
                code="account_deactivated",
                message=AUTH_ERRORS["ACCOUNT_DEACTIVATED"],
                status_code=403,
            )

        user.touch_last_login()
        user = self._users.save(user)

        logger.info("auth.login", extra={"user_id": user.id})

        return LoginUserOutput(
            user_id=user.id,
            email=user.email,
            role=user.role,
            last_login_at=user.last_login_at,
        )
