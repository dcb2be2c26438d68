"""Persistence adapters.

Services depend on the abstract repositories in ``base``; the in-memory
implementations back the API until a database adapter is plugged in.
"""

from __future__ import annotations

from blottr.adapters.repositories.base import (
    AbstractContactInquiryRepository,
    AbstractUserRepository,
)
from blottr.adapters.repositories.in_memory import (
    InMemoryContactInquiryRepository,
    InMemoryUserRepository,
)

__all__ = [
    "AbstractContactInquiryRepository",
    "AbstractUserRepository",
    "InMemoryContactInquiryRepository",
    "InMemoryUserRepository",
]
