"""Fixed-window rate limiter over a counter store.

Each subject gets one counter per window. The counter store owns the window:
the counter is created with a TTL equal to the window size and its expiry is
the window reset. The limiter itself never reads the clock for counting.
"""

from __future__ import annotations

import time
from typing import Callable

from animequotes.adapters.counter_store.base import AbstractCounterStore
from animequotes.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from animequotes.adapters.timeouts import bounded


class CounterStoreRateLimiter(AbstractRateLimiter):
    """Rate limiter allowing ``limit`` requests per ``window_seconds`` per subject.

    The increment happens before the decision, so a rejected request still
    counts toward the subject's window.
    """

    def __init__(
        self,
        store: AbstractCounterStore,
        *,
        namespace: str,
        limit: int,
        window_seconds: int,
        timeout_seconds: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Shared counter store.
            namespace: Key prefix separating this policy's counters from others.
            limit: Maximum number of allowed requests per window.
            window_seconds: Size of the fixed window in seconds.
            timeout_seconds: Upper bound for the store call (None = unbounded).
            clock: Time source used only to report ``reset_at``.

        Raises:
            ValueError: If limit, window_seconds or namespace are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        if not namespace:
            raise ValueError("namespace must be a non-empty string")

        self.limit = limit
        self.window_seconds = window_seconds
        self.namespace = namespace
        self._store = store
        self._timeout = timeout_seconds
        self._clock = clock

    def counter_key(self, subject: str) -> str:
        """Namespaced counter key for a subject."""
        return f"{self.namespace}:{subject}"

    async def consume(self, subject: str) -> RateLimitResult:
        if not subject:
            raise ValueError("subject must be a non-empty string")

        state = await bounded(
            self._store.incr(self.counter_key(subject), ttl_seconds=self.window_seconds),
            timeout=self._timeout,
            store="counter",
            operation="incr",
        )
        reset_at = int(self._clock()) + state.ttl_seconds
        remaining = max(0, self.limit - state.count)

        if state.count <= self.limit:
            return RateLimitResult(
                allowed=True,
                limit=self.limit,
                remaining=remaining,
                reset_at=reset_at,
                retry_after_seconds=None,
            )

        return RateLimitResult(
            allowed=False,
            limit=self.limit,
            remaining=0,
            reset_at=reset_at,
            retry_after_seconds=state.ttl_seconds,
        )
