"""In-process counter store.

Notes:
- Per-process only: running multiple workers multiplies the effective limits.
- Thread-safe: uses a lock around shared state, so increments are atomic.
- Bounded: expired entries are swept on every write, and past ``max_entries``
  the oldest entries are dropped.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from animequotes.adapters.counter_store.base import AbstractCounterStore, CounterState

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: str
    expires_at: float


class InMemoryCounterStore(AbstractCounterStore):
    """Dictionary-backed store with TTL expiry and a size cap.

    Important:
        This store is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker keeps its own
        counters and validity cache. Configure ``STORE_REDIS_URL`` for those
        deployments.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        max_entries: int | None = 100_000,
    ) -> None:
        """Initialize the store.

        Args:
            clock: Time source function returning UNIX time in seconds.
            max_entries: Maximum number of live keys (None for unlimited).
                Dropping a counter early resets that subject's window.
        """
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._clock = clock
        self._max_entries = max_entries
        self._lock = threading.RLock()
        # Insertion ordered, so the first key is the oldest
        self._entries: dict[str, _Entry] = {}
        self._evictions = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _live_entry_locked(self, key: str, now: float) -> _Entry | None:
        entry = self._entries.get(key)
        if entry is not None and entry.expires_at <= now:
            del self._entries[key]
            return None
        return entry

    def _evict_expired_locked(self, now: float) -> None:
        expired_keys = [k for k, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired_keys:
            del self._entries[key]

    def _evict_if_over_capacity_locked(self) -> None:
        if self._max_entries is None:
            return

        while len(self._entries) > self._max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            self._evictions += 1
            if self._evictions == 1 or self._evictions % 1000 == 0:
                logger.warning(
                    "counter_store.capacity_eviction",
                    extra={"max_entries": self._max_entries, "evictions": self._evictions},
                )

    async def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._live_entry_locked(key, self._clock())
            return entry.value if entry else None

    async def set(self, key: str, value: str, *, ttl_seconds: int) -> None:
        if ttl_seconds < 1:
            raise ValueError("ttl_seconds must be >= 1")
        now = self._clock()
        with self._lock:
            self._evict_expired_locked(now)
            self._entries.pop(key, None)
            self._entries[key] = _Entry(value=value, expires_at=now + ttl_seconds)
            self._evict_if_over_capacity_locked()

    async def incr(self, key: str, *, ttl_seconds: int) -> CounterState:
        if ttl_seconds < 1:
            raise ValueError("ttl_seconds must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()
        with self._lock:
            self._evict_expired_locked(now)
            entry = self._entries.get(key)
            if entry is None:
                entry = _Entry(value="0", expires_at=now + ttl_seconds)
                self._entries[key] = entry
                self._evict_if_over_capacity_locked()
            count = int(entry.value) + 1
            entry.value = str(count)
            remaining = max(0, int(math.ceil(entry.expires_at - now)))
            return CounterState(count=count, ttl_seconds=remaining)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()
            self._evictions = 0
