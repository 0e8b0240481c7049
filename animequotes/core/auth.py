"""API key validation.

A presented key is checked in three steps, cheapest first:

1. Syntax: fixed prefix and minimum length, no I/O.
2. Validity cache: ``rl_api:<key>`` in the counter store. Only confirmed keys
   are ever written there, so a hit is authoritative; a miss means nothing.
3. Durable lookup: exact match in the record store.

Store failures fail closed: the key is treated as unknown.
"""

from __future__ import annotations

import hashlib
import logging
from enum import Enum

from animequotes.adapters.counter_store.base import AbstractCounterStore
from animequotes.adapters.records.base import AbstractRecordStore
from animequotes.adapters.timeouts import bounded
from animequotes.core.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

VALIDITY_CACHE_PREFIX = "rl_api"


class KeyValidity(str, Enum):
    VALID = "valid"
    MALFORMED = "malformed"
    UNKNOWN = "unknown"


def hash_api_key(key: str) -> str:
    """Short SHA-256 digest of a key, safe to log."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def validity_cache_key(key: str) -> str:
    return f"{VALIDITY_CACHE_PREFIX}:{key}"


class CredentialValidator:
    """Validate API keys against the validity cache and the record store."""

    def __init__(
        self,
        *,
        counter_store: AbstractCounterStore,
        record_store: AbstractRecordStore,
        prefix: str = "ani-",
        min_length: int = 60,
        cache_enabled: bool = True,
        cache_ttl_seconds: int = 3600,
        timeout_seconds: float | None = None,
    ) -> None:
        """Initialize the validator.

        Args:
            counter_store: Store holding the validity cache.
            record_store: Durable store holding issued API keys.
            prefix: Literal prefix of every well-formed key.
            min_length: Minimum total key length.
            cache_enabled: Write keys confirmed by the record store to the cache.
            cache_ttl_seconds: Lifetime of validity cache entries.
            timeout_seconds: Upper bound for each store call.
        """
        self._counter_store = counter_store
        self._record_store = record_store
        self.prefix = prefix
        self.min_length = min_length
        self.cache_enabled = cache_enabled
        self.cache_ttl_seconds = cache_ttl_seconds
        self._timeout = timeout_seconds

    def is_well_formed(self, key: str) -> bool:
        """Check prefix and length without touching any store."""
        return key.startswith(self.prefix) and len(key) >= self.min_length

    async def is_cached(self, key: str) -> bool:
        """Return True when the key is present in the validity cache.

        A store failure counts as a miss so the durable lookup still decides.
        """
        try:
            cached = await bounded(
                self._counter_store.get(validity_cache_key(key)),
                timeout=self._timeout,
                store="counter",
                operation="get",
            )
        except StoreUnavailableError:
            logger.warning(
                "auth.cache_unavailable",
                extra={"api_key_hash": hash_api_key(key)},
            )
            return False
        return cached is not None

    async def lookup(self, key: str) -> bool:
        """Confirm the key against the record store.

        On a hit the key is written to the validity cache (when enabled).

        Returns:
            True if the key exists. Store failures return False (fail closed).
        """
        key_hash = hash_api_key(key)
        try:
            exists = await bounded(
                self._record_store.api_key_exists(key),
                timeout=self._timeout,
                store="records",
                operation="api_key_exists",
            )
        except StoreUnavailableError:
            logger.error(
                "auth.lookup_unavailable",
                extra={"api_key_hash": key_hash, "fallback": "reject"},
            )
            return False

        if not exists:
            logger.info("auth.unknown_key", extra={"api_key_hash": key_hash})
            return False

        if self.cache_enabled:
            await self._remember(key)
        return True

    async def _remember(self, key: str) -> None:
        try:
            await bounded(
                self._counter_store.set(
                    validity_cache_key(key), "1", ttl_seconds=self.cache_ttl_seconds
                ),
                timeout=self._timeout,
                store="counter",
                operation="set",
            )
        except StoreUnavailableError:
            # The key is valid either way; the next request repeats the lookup.
            logger.warning("auth.cache_write_failed", extra={"api_key_hash": hash_api_key(key)})
            return
        logger.debug(
            "auth.cached",
            extra={"api_key_hash": hash_api_key(key), "ttl_s": self.cache_ttl_seconds},
        )

    async def validate(self, key: str) -> KeyValidity:
        """Run all three checks in order.

        Args:
            key: Candidate API key.

        Returns:
            KeyValidity.MALFORMED, KeyValidity.UNKNOWN or KeyValidity.VALID.
        """
        if not self.is_well_formed(key):
            return KeyValidity.MALFORMED
        if await self.is_cached(key):
            return KeyValidity.VALID
        if await self.lookup(key):
            return KeyValidity.VALID
        return KeyValidity.UNKNOWN
