"""Bounded waits for store calls.

A hung counter or record store must not stall a request indefinitely. Every
store call made by the gate and the quote service goes through ``bounded``,
which turns a timeout into ``StoreUnavailableError``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, TypeVar

from animequotes.core.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def bounded(
    awaitable: Awaitable[T],
    *,
    timeout: float | None,
    store: str,
    operation: str,
) -> T:
    """Await a store call with an upper bound.

    Args:
        awaitable: The store call.
        timeout: Seconds to wait; None waits forever.
        store: Store name for logs/details (``counter`` or ``records``).
        operation: Operation name for logs/details.

    Returns:
        The store call's result.

    Raises:
        StoreUnavailableError: If the call did not finish in time.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.error(
            "store.timeout",
            extra={"store": store, "operation": operation, "timeout_s": timeout},
        )
        raise StoreUnavailableError(
            details={"store": store, "operation": operation, "hint": "timeout"},
        ) from exc
