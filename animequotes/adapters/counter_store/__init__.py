"""Counter store adapters.

The rate limiter and the API key validity cache share one key-value store
with atomic increment and TTL expiry. Redis backs it in deployments; the
in-process store serves single-worker runs and tests.
"""

from animequotes.adapters.counter_store.base import AbstractCounterStore, CounterState
from animequotes.adapters.counter_store.in_memory import InMemoryCounterStore
from animequotes.adapters.counter_store.redis_store import RedisCounterStore

__all__ = [
    "AbstractCounterStore",
    "CounterState",
    "InMemoryCounterStore",
    "RedisCounterStore",
]
