"""In-memory fixed-window rate limit store.

Notes:
- Per-process only: running N workers yields up to N times the nominal quota.
- Thread-safe: a single lock guards the entry map; no I/O or awaits happen
  while it is held.
- Wall-clock based: clock adjustments are not compensated.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import replace
from typing import Callable

from blottr.adapters.rate_limit.base import (
    AbstractRateLimitStore,
    RateLimitEntry,
    RateLimitResult,
)


def epoch_ms() -> int:
    """Current UNIX time in whole milliseconds."""
    return time.time_ns() // 1_000_000


class InMemoryRateLimitStore(AbstractRateLimitStore):
    """Fixed-window counters keyed by client and route.

    A window starts with the first request for a key and lasts ``window_ms``.
    Expired entries are swept inline on every admission check rather than by
    a background timer.
    """

    def __init__(self, *, clock: Callable[[], int] = epoch_ms) -> None:
        """Initialize an empty store.

        Args:
            clock: Time source returning UNIX time in milliseconds.
        """
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, RateLimitEntry] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _sweep_expired_locked(self, now: int) -> None:
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]

    def _get_or_start_window_locked(self, key: str, now: int, window_ms: int) -> RateLimitEntry:
        entry = self._entries.get(key)
        if entry is None or entry.is_expired(now):
            entry = RateLimitEntry(key=key, count=0, reset_time=now + window_ms)
            self._entries[key] = entry
        return entry

    def consume(self, key: str, *, max_requests: int, window_ms: int) -> RateLimitResult:
        """Admit or reject one request for ``key``.

        Raises:
            ValueError: If key is empty or the limits are invalid.
        """
        if not key:
            raise ValueError("key must be a non-empty string")
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")

        with self._lock:
            now = self._clock()
            self._sweep_expired_locked(now)
            entry = self._get_or_start_window_locked(key, now, window_ms)

            if entry.count >= max_requests:
                return RateLimitResult(
                    allowed=False,
                    limit=max_requests,
                    remaining=0,
                    reset_time=entry.reset_time,
                    retry_after_seconds=max(0, int(math.ceil((entry.reset_time - now) / 1000))),
                )

            # Reserve before the handler runs so concurrent requests see it
            entry.count += 1
            return RateLimitResult(
                allowed=True,
                limit=max_requests,
                remaining=max(0, max_requests - entry.count),
                reset_time=entry.reset_time,
            )

    def refund(self, key: str, *, reset_time: int) -> None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.reset_time != reset_time:
                # The reservation's window is gone; nothing to give back.
                return
            entry.count = max(0, entry.count - 1)

    def get_entry(self, key: str) -> RateLimitEntry | None:
        with self._lock:
            entry = self._entries.get(key)
            return replace(entry) if entry is not None else None

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()
