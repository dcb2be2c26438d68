"""In-memory repositories.

Per-process and non-persistent: data is lost on restart. Thread-safe via a
lock around each store.
"""

from __future__ import annotations

import itertools
import threading
import uuid
from dataclasses import replace
from datetime import datetime

from blottr.adapters.repositories.base import (
    AbstractContactInquiryRepository,
    AbstractUserRepository,
)
from blottr.core.errors import ConflictAppError, NotFoundAppError
from blottr.core.messages import VALIDATION_ERRORS
from blottr.models.contact_inquiry import ContactInquiry, InquiryStatus
from blottr.models.user import User, utcnow


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class InMemoryUserRepository(AbstractUserRepository):
    """Users keyed by id, with a unique email index."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._users: dict[int, User] = {}
        self._ids_by_email: dict[str, int] = {}
        self._next_id = itertools.count(1)

    def add(self, user: User) -> User:
        email = _normalize_email(user.email)
        with self._lock:
            if email in self._ids_by_email:
                raise ConflictAppError(
                    code="email_already_exists",
                    message=VALIDATION_ERRORS["EMAIL_ALREADY_EXISTS"],
                    details={"field": "email"},
                )
            stored = replace(user, id=next(self._next_id), email=email)
            self._users[stored.id] = stored
            self._ids_by_email[email] = stored.id
            return replace(stored)

    def get(self, user_id: int) -> User | None:
        with self._lock:
            user = self._users.get(user_id)
            return replace(user) if user else None

    def get_by_email(self, email: str) -> User | None:
        with self._lock:
            user_id = self._ids_by_email.get(_normalize_email(email))
            if user_id is None:
                return None
            return replace(self._users[user_id])

    def save(self, user: User) -> User:
        with self._lock:
            if user.id is None or user.id not in self._users:
                raise NotFoundAppError(code="user_not_found", message="User not found")
            current = self._users[user.id]
            email = _normalize_email(user.email)
            if email != current.email:
                if email in self._ids_by_email:
                    raise ConflictAppError(
                        code="email_already_exists",
                        message=VALIDATION_ERRORS["EMAIL_ALREADY_EXISTS"],
                        details={"field": "email"},
                    )
                del self._ids_by_email[current.email]
                self._ids_by_email[email] = user.id
            stored = replace(user, email=email)
            self._users[user.id] = stored
            return replace(stored)


def _copy_inquiry(inquiry: ContactInquiry, **changes) -> ContactInquiry:
    """Copy an inquiry, including its mutable style list."""
    styles = changes.pop("tattoo_styles", inquiry.tattoo_styles)
    return replace(
        inquiry,
        tattoo_styles=list(styles) if styles is not None else None,
        **changes,
    )


class InMemoryContactInquiryRepository(AbstractContactInquiryRepository):
    """Inquiries keyed by a random UUID."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._inquiries: dict[str, ContactInquiry] = {}

    def add(self, inquiry: ContactInquiry) -> ContactInquiry:
        stored = _copy_inquiry(inquiry, id=inquiry.id or str(uuid.uuid4()))
        with self._lock:
            self._inquiries[stored.id] = stored
        return _copy_inquiry(stored)

    def get(self, inquiry_id: str) -> ContactInquiry | None:
        with self._lock:
            inquiry = self._inquiries.get(inquiry_id)
            return _copy_inquiry(inquiry) if inquiry else None

    def save(self, inquiry: ContactInquiry) -> ContactInquiry:
        with self._lock:
            if inquiry.id is None or inquiry.id not in self._inquiries:
                raise NotFoundAppError(
                    code="contact_inquiry_not_found",
                    message=f'Contact inquiry with ID "{inquiry.id}" not found',
                )
            stored = _copy_inquiry(inquiry, updated_at=utcnow())
            self._inquiries[inquiry.id] = stored
            return _copy_inquiry(stored)

    def count(
        self,
        *,
        status: InquiryStatus | None = None,
        created_before: datetime | None = None,
        created_since: datetime | None = None,
    ) -> int:
        with self._lock:
            inquiries = list(self._inquiries.values())

        return sum(
            1
            for inquiry in inquiries
            if (status is None or inquiry.status == status)
            and (created_before is None or inquiry.created_at < created_before)
            and (created_since is None or inquiry.created_at >= created_since)
        )
