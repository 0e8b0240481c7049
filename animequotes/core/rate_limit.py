"""Rate limiting policies for the request gate.

Two policies share one mechanism (fixed-window counters in the counter store):

- per IP, for anonymous requests to free endpoints;
- per API key, for requests carrying a validated key.

Each policy uses its own counter namespace, so an API key and an IP address
with the same text never share a counter.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from starlette.requests import Request

from animequotes.adapters.counter_store.base import AbstractCounterStore
from animequotes.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from animequotes.adapters.rate_limit.fixed_window import CounterStoreRateLimiter
from animequotes.core.config import AppSettings
from animequotes.core.errors import AppError, QuotaExceededError, StoreUnavailableError

logger = logging.getLogger(__name__)

IP_NAMESPACE = "rl_ip"
API_KEY_NAMESPACE = "rl_key"

RateLimitCheck = Callable[[], Awaitable[AppError | None]]


def _hash_subject(subject: str) -> str:
    """Hash the rate limit subject for logging without exposing secrets."""
    return hashlib.sha256(subject.encode()).hexdigest()[:16]


def client_ip(request: Request, *, trust_forwarded_for: bool = False) -> str:
    """Resolve the client IP used as the anonymous rate limit subject.

    Args:
        request: Incoming request.
        trust_forwarded_for: Use the first ``X-Forwarded-For`` entry when present.

    Returns:
        str: Client address, or ``"unknown"`` when the transport has none.
    """

    if trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "")
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else "unknown"


def build_rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    return {
        "Retry-After": str(result.retry_after_seconds or 0),
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_at),
    }


@dataclass
class RateLimitPolicy:
    """A limiter plus the behavior around it (toggle, fail mode, headers)."""

    limiter: AbstractRateLimiter
    key_type: str
    enabled: bool = True
    fail_open: bool = False
    include_headers: bool = True

    async def check(self, subject: str) -> AppError | None:
        """Consume one unit for ``subject``.

        Returns:
            None when the request may proceed, otherwise the error to reject with.
        """

        if not self.enabled:
            return None

        subject_hash = _hash_subject(subject)
        try:
            result = await self.limiter.consume(subject)
        except StoreUnavailableError as exc:
            if self.fail_open:
                logger.warning(
                    "rate_limit.store_unavailable",
                    extra={"key_type": self.key_type, "key_hash": subject_hash, "fallback": "allow"},
                )
                return None
            logger.error(
                "rate_limit.store_unavailable",
                extra={"key_type": self.key_type, "key_hash": subject_hash, "fallback": "reject"},
            )
            return exc

        if result.allowed:
            logger.debug(
                "rate_limit.allowed",
                extra={
                    "key_type": self.key_type,
                    "key_hash": subject_hash,
                    "limit": result.limit,
                    "remaining": result.remaining,
                    "window_s": self.limiter.window_seconds,
                },
            )
            return None

        logger.warning(
            "rate_limit.exceeded",
            extra={
                "key_type": self.key_type,
                "key_hash": subject_hash,
                "limit": result.limit,
                "remaining": result.remaining,
                "window_s": self.limiter.window_seconds,
                "retry_after_s": result.retry_after_seconds,
            },
        )
        return QuotaExceededError(
            details={"limit": result.limit, "retry_after": float(result.retry_after_seconds or 0)},
            headers=build_rate_limit_headers(result) if self.include_headers else None,
        )


@dataclass
class RateLimitPolicies:
    ip: RateLimitPolicy
    api_key: RateLimitPolicy


def build_rate_limit_policies(store: AbstractCounterStore, app_settings: AppSettings) -> RateLimitPolicies:
    """Create the IP and API key policies from settings."""

    common = {
        "enabled": app_settings.rate_limit_enabled,
        "fail_open": app_settings.rate_limit_fail_open,
        "include_headers": app_settings.rate_limit_include_headers,
    }
    ip_limiter = CounterStoreRateLimiter(
        store,
        namespace=IP_NAMESPACE,
        limit=app_settings.rate_limit_ip_requests,
        window_seconds=app_settings.rate_limit_ip_window_seconds,
        timeout_seconds=app_settings.store_timeout_seconds,
    )
    key_limiter = CounterStoreRateLimiter(
        store,
        namespace=API_KEY_NAMESPACE,
        limit=app_settings.rate_limit_key_requests,
        window_seconds=app_settings.rate_limit_key_window_seconds,
        timeout_seconds=app_settings.store_timeout_seconds,
    )
    return RateLimitPolicies(
        ip=RateLimitPolicy(limiter=ip_limiter, key_type="ip", **common),
        api_key=RateLimitPolicy(limiter=key_limiter, key_type="api_key", **common),
    )


async def limit_by_ip(policy: RateLimitPolicy, ip: str) -> AppError | None:
    """Apply the anonymous (per IP) policy."""
    return await policy.check(ip)


def limit_by_api_key(policy: RateLimitPolicy, api_key: str) -> RateLimitCheck:
    """Bind the per-key policy to ``api_key``.

    Returns:
        A zero-argument check that consumes one unit from the key's budget.
    """

    async def check() -> AppError | None:
        return await policy.check(api_key)

    return check
