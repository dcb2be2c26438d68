"""Tests for the in-memory repositories."""

from datetime import timedelta

import pytest

from blottr.adapters.repositories.in_memory import (
    InMemoryContactInquiryRepository,
    InMemoryUserRepository,
)
from blottr.core.errors import ConflictAppError, NotFoundAppError
from blottr.models.contact_inquiry import ContactInquiry, InquiryStatus, ProjectType
from blottr.models.user import User, utcnow


def _inquiry(**overrides) -> ContactInquiry:
    fields = {
        "full_name": "Camille Martin",
        "email": "camille@example.com",
        "subject": "Projet floral",
        "message": "Un message assez long",
        "project_type": ProjectType.CONSULTATION,
    }
    fields.update(overrides)
    return ContactInquiry(**fields)


class TestUserRepository:
    def test_assigns_ids_and_normalizes_email(self):
        users = InMemoryUserRepository()

        first = users.add(User(email="Ink@Example.com", password_hash="h"))
        second = users.add(User(email="other@example.com", password_hash="h"))

        assert (first.id, second.id) == (1, 2)
        assert first.email == "ink@example.com"
        assert users.get_by_email("INK@example.com").id == 1

    def test_duplicate_email_conflicts(self):
        users = InMemoryUserRepository()
        users.add(User(email="ink@example.com", password_hash="h"))

        with pytest.raises(ConflictAppError):
            users.add(User(email=" ink@example.com ", password_hash="h"))

    def test_returned_users_are_copies(self):
        users = InMemoryUserRepository()
        user = users.add(User(email="ink@example.com", password_hash="h"))

        user.is_active = False

        assert users.get(user.id).is_active is True

    def test_save_unknown_user(self):
        with pytest.raises(NotFoundAppError):
            InMemoryUserRepository().save(User(email="x@example.com", password_hash="h", id=42))

    def test_email_change_moves_index(self):
        users = InMemoryUserRepository()
        user = users.add(User(email="old@example.com", password_hash="h"))

        user.email = "new@example.com"
        users.save(user)

        assert users.get_by_email("old@example.com") is None
        assert users.get_by_email("new@example.com").id == user.id


class TestContactInquiryRepository:
    def test_counts(self):
        inquiries = InMemoryContactInquiryRepository()
        old = utcnow() - timedelta(days=2)
        inquiries.add(_inquiry(created_at=old))
        inquiries.add(_inquiry(created_at=old, status=InquiryStatus.CLOSED))
        inquiries.add(_inquiry())
        cutoff = utcnow() - timedelta(days=1)

        assert inquiries.count() == 3
        assert inquiries.count(status=InquiryStatus.PENDING) == 2
        assert inquiries.count(created_since=cutoff) == 1
        assert inquiries.count_pending_older_than(cutoff) == 1

    def test_save_unknown_inquiry(self):
        with pytest.raises(NotFoundAppError):
            InMemoryContactInquiryRepository().save(_inquiry(id="missing"))

    def test_default_priority_from_project_type(self):
        assert _inquiry(project_type=ProjectType.APPOINTMENT).priority == 8
        assert _inquiry(project_type=ProjectType.QUESTION).priority == 3
        assert _inquiry(priority=15).priority == 10

    def test_style_list_is_not_shared_with_callers(self):
        inquiries = InMemoryContactInquiryRepository()
        styles = ["blackwork"]
        created = inquiries.add(_inquiry(tattoo_styles=styles))

        styles.append("tribal")
        created.tattoo_styles.append("dotwork")
        inquiries.get(created.id).tattoo_styles.append("realism")

        assert inquiries.get(created.id).tattoo_styles == ["blackwork"]
