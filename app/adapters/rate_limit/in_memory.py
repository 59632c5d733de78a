"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: lookup, reset and increment happen under one lock.
- Each key gets its own window, opened by its first request.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


@dataclass
class _WindowState:
    count: int
    reset_at: float


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting requests per key within a fixed time window.

    The first request from a key opens a window of ``window_seconds``. Every
    request inside the window increments the count; once the count exceeds
    ``limit`` further requests are rejected until the window expires, at
    which point the next request starts a fresh window with a count of 1.

    Expired entries linger until ``sweep()`` is called, so memory is bounded
    by the number of clients seen in roughly one window plus one sweep
    interval.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of allowed units per window.
            window_seconds: Size of the fixed window in seconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._state_by_key: dict[str, _WindowState] = {}

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._state_by_key)

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Count a request for ``key`` and decide whether it may proceed.

        Args:
            key: Unique identifier for rate limiting (client address).
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty or cost is invalid.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        with self._lock:
            now = self._clock()
            state = self._state_by_key.get(key)
            if state is None or now > state.reset_at:
                state = _WindowState(count=cost, reset_at=now + self._window_seconds)
                self._state_by_key[key] = state
            else:
                state.count += cost

            remaining = max(0, self._limit - state.count)
            if state.count <= self._limit:
                return RateLimitResult(
                    allowed=True,
                    limit=self._limit,
                    remaining=remaining,
                    reset_at=int(math.ceil(state.reset_at)),
                    retry_after_seconds=None,
                )

            return RateLimitResult(
                allowed=False,
                limit=self._limit,
                remaining=0,
                reset_at=int(math.ceil(state.reset_at)),
                retry_after_seconds=max(1, int(math.ceil(state.reset_at - now))),
            )

    def sweep(self) -> int:
        """Remove entries whose window has already expired."""
        with self._lock:
            now = self._clock()
            expired = [k for k, s in self._state_by_key.items() if now > s.reset_at]
            for key in expired:
                del self._state_by_key[key]
            return len(expired)
