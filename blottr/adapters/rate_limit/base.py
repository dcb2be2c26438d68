"""Rate limit store interfaces.

The middleware depends on this abstraction (not the concrete implementation)
so the storage backend can be swapped with minimal changes.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class RateLimitEntry:
    """Counter for one key within its current window.

    Attributes:
        key: Composite identifier, ``"<client ip>:<route pattern>"``.
        count: Requests admitted in the current window.
        reset_time: UNIX epoch milliseconds at which the window expires.
    """

    key: str
    count: int
    reset_time: int

    def is_expired(self, now_ms: int) -> bool:
        return now_ms >= self.reset_time


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of an admission check.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Max requests per window.
        remaining: Requests left in the window after this one (0 when blocked).
        reset_time: UNIX epoch milliseconds when the window resets. Also
            identifies the window a reservation was made in.
        retry_after_seconds: Suggested wait in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_time: int
    retry_after_seconds: int | None = None

    @property
    def reset_at(self) -> int:
        """Window reset as UNIX epoch seconds, rounded up."""
        return int(math.ceil(self.reset_time / 1000))


class AbstractRateLimitStore(ABC):
    """Interface for rate limit counter stores."""

    @abstractmethod
    def consume(self, key: str, *, max_requests: int, window_ms: int) -> RateLimitResult:
        """Check the quota for ``key`` and reserve one unit if admitted.

        Lookup, window creation, the admission check and the increment must
        be atomic with respect to other callers.

        Args:
            key: Unique identifier (client ip + route pattern).
            max_requests: Maximum admitted requests per window.
            window_ms: Window length in milliseconds.

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def refund(self, key: str, *, reset_time: int) -> None:
        """Give back one reserved unit for ``key``.

        Only applies when the key's current window is the one identified by
        ``reset_time``; the count never drops below zero.
        """
        raise NotImplementedError

    @abstractmethod
    def get_entry(self, key: str) -> RateLimitEntry | None:
        """Return a snapshot of the entry for ``key``, if present."""
        raise NotImplementedError
