"""Redis-backed counter store.

INCR is atomic server-side, so concurrent requests from the same subject can
never lose an update. The expiry is attached when INCR creates the key
(count == 1); a key found without expiry is repaired on the next increment.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from redis.asyncio import Redis
from redis.exceptions import RedisError

from animequotes.adapters.counter_store.base import AbstractCounterStore, CounterState
from animequotes.core.errors import StoreUnavailableError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _translate_errors(operation: str) -> AsyncIterator[None]:
    try:
        yield
    except RedisError as exc:
        logger.error(
            "counter_store.error",
            extra={"operation": operation, "error_type": type(exc).__name__},
        )
        raise StoreUnavailableError(
            details={"store": "counter", "operation": operation},
        ) from exc


class RedisCounterStore(AbstractCounterStore):
    """Counter store on top of ``redis.asyncio``."""

    def __init__(self, client: Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCounterStore":
        """Build a store from a ``redis://`` URL."""
        return cls(Redis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> str | None:
        async with _translate_errors("get"):
            value = await self._client.get(key)
        if isinstance(value, bytes):
            return value.decode()
        return value

    async def set(self, key: str, value: str, *, ttl_seconds: int) -> None:
        async with _translate_errors("set"):
            await self._client.set(key, value, ex=ttl_seconds)

    async def incr(self, key: str, *, ttl_seconds: int) -> CounterState:
        async with _translate_errors("incr"):
            count = int(await self._client.incr(key))
            if count == 1:
                await self._client.expire(key, ttl_seconds)
                return CounterState(count=count, ttl_seconds=ttl_seconds)

            ttl = int(await self._client.ttl(key))
            if ttl < 0:
                # -1: key exists without expiry (expire call was lost)
                logger.warning("counter_store.missing_ttl", extra={"ttl": ttl})
                await self._client.expire(key, ttl_seconds)
                ttl = ttl_seconds
        return CounterState(count=count, ttl_seconds=ttl)

    async def close(self) -> None:
        await self._client.aclose()
