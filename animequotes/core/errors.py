"""Application-level exception types.

This module defines domain errors used across the gate, adapters and routes,
enabling consistent error handling, logging, and API responses. Every error
carries the HTTP status it maps to and a fixed client-facing message.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    http_status: int
    retry_after: float
    limit: int
    store: str
    operation: str
    resource: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    http_status: ClassVar[int] = 400

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


@dataclass
class RouteNotFoundError(AppError):
    """Raised when a path under the API prefix matches no known route."""

    http_status: ClassVar[int] = 404

    code: str = "route_not_found"
    message: str = "Endpoint not found"


class AuthenticationAppError(AppError):
    """Raised when authentication fails."""

    http_status: ClassVar[int] = 401


@dataclass
class MissingCredentialError(AuthenticationAppError):
    """Protected endpoint requested without an ``x-api-key`` header."""

    code: str = "missing_api_key"
    message: str = "Unauthorized. Missing API key!"


@dataclass
class MalformedCredentialError(AuthenticationAppError):
    """API key failed the prefix/length check."""

    code: str = "malformed_api_key"
    message: str = "Unauthorized. Invalid API key!"


@dataclass
class UnknownCredentialError(AuthenticationAppError):
    """Well-formed API key that is neither cached nor stored."""

    code: str = "invalid_api_key"
    message: str = "Invalid API key"


@dataclass
class QuotaExceededError(AppError):
    """Subject exceeded its rate limit for the current window."""

    http_status: ClassVar[int] = 429

    code: str = "rate_limit_exceeded"
    message: str = "Too many requests, please try again later."
    headers: dict[str, str] | None = None


@dataclass
class NotFoundAppError(AppError):
    """Requested resource does not exist."""

    http_status: ClassVar[int] = 404

    code: str = "not_found"
    message: str = "Resource not found"


@dataclass
class StoreUnavailableError(AppError):
    """Counter or record store timed out or could not be reached."""

    http_status: ClassVar[int] = 503

    code: str = "store_unavailable"
    message: str = "Service temporarily unavailable"
