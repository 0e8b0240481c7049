"""Counter store interface.

The gate depends on this abstraction only, so the backing store (Redis or the
in-process store) can be swapped without touching the HTTP layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class CounterState:
    """Counter value right after an increment.

    Attributes:
        count: Post-increment value.
        ttl_seconds: Seconds until the counter expires.
    """

    count: int
    ttl_seconds: int


class AbstractCounterStore(ABC):
    """Shared key-value store with atomic increment and TTL expiry."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the value stored under ``key`` or None when absent/expired."""
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, value: str, *, ttl_seconds: int) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds``."""
        raise NotImplementedError

    @abstractmethod
    async def incr(self, key: str, *, ttl_seconds: int) -> CounterState:
        """Atomically increment the counter under ``key``.

        A counter that does not exist yet is created with value 1 and expires
        after ``ttl_seconds``. Later increments keep the original expiry.

        Args:
            key: Counter key.
            ttl_seconds: Lifetime applied when the counter is created.

        Returns:
            CounterState with the post-increment count and remaining TTL.
        """
        raise NotImplementedError

    async def close(self) -> None:
        """Release connections held by the store."""
        return None
