"""User domain model."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(IntEnum):
    CLIENT = 1
    ARTIST = 2


@dataclass
class User:
    """A registered account, either a client or an artist.

    ``id`` is assigned by the repository on insert.
    """

    email: str
    password_hash: str
    role: UserRole = UserRole.CLIENT
    id: int | None = None
    full_name: str | None = None
    phone: str | None = None
    is_active: bool = True
    email_verified: bool = False
    phone_verified: bool = False
    last_login_at: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None

    @property
    def is_client(self) -> bool:
        return self.role == UserRole.CLIENT

    @property
    def is_artist(self) -> bool:
        return self.role == UserRole.ARTIST

    @property
    def display_name(self) -> str:
        return self.full_name or self.email.split("@")[0]

    def touch_last_login(self, when: datetime | None = None) -> None:
        self.last_login_at = when or utcnow()
        self.updated_at = self.last_login_at
