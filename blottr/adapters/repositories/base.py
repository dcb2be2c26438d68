"""Repository interfaces for users and contact inquiries."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from blottr.models.contact_inquiry import ContactInquiry, InquiryStatus
from blottr.models.user import User


class AbstractUserRepository(ABC):
    """Storage for user accounts."""

    @abstractmethod
    def add(self, user: User) -> User:
        """Insert a new user and assign its id.

        Raises:
            ConflictAppError: If the email is already registered.
        """
        raise NotImplementedError

    @abstractmethod
    def get(self, user_id: int) -> User | None:
        raise NotImplementedError

    @abstractmethod
    def get_by_email(self, email: str) -> User | None:
        """Look up a user by email, case-insensitively."""
        raise NotImplementedError

    @abstractmethod
    def save(self, user: User) -> User:
        """Persist changes to an existing user."""
        raise NotImplementedError


class AbstractContactInquiryRepository(ABC):
    """Storage for contact inquiries."""

    @abstractmethod
    def add(self, inquiry: ContactInquiry) -> ContactInquiry:
        """Insert a new inquiry and assign its id."""
        raise NotImplementedError

    @abstractmethod
    def get(self, inquiry_id: str) -> ContactInquiry | None:
        raise NotImplementedError

    @abstractmethod
    def save(self, inquiry: ContactInquiry) -> ContactInquiry:
        raise NotImplementedError

    @abstractmethod
    def count(
        self,
        *,
        status: InquiryStatus | None = None,
        created_before: datetime | None = None,
        created_since: datetime | None = None,
    ) -> int:
        """Count inquiries matching all of the given filters."""
        raise NotImplementedError

    def count_pending_older_than(self, cutoff: datetime) -> int:
        """Count pending inquiries created before ``cutoff``."""
        return self.count(status=InquiryStatus.PENDING, created_before=cutoff)
