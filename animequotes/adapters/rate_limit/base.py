"""Rate limiter contract used by the gate's IP and API key policies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of counting one request against a subject's window.

    Attributes:
        allowed: False once the post-increment count exceeds ``limit``.
        limit: Ceiling for the window.
        remaining: Requests left before the ceiling (0 when blocked).
        reset_at: UNIX time at which the window's counter expires.
        retry_after_seconds: Seconds until reset, only set when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    limit: int
    window_seconds: int

    @abstractmethod
    async def consume(self, subject: str) -> RateLimitResult:
        """Count one request for ``subject`` (an IP address or API key) and decide."""
        raise NotImplementedError
