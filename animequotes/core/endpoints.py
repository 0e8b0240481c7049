"""Static route table and endpoint classification.

Paths are classified relative to the API prefix, before any store or
database access, so unknown endpoints never consume rate limit budget.
"""

from __future__ import annotations

import re
from enum import Enum

from starlette.routing import compile_path


class EndpointAccess(str, Enum):
    INVALID = "invalid"
    PROTECTED = "protected"
    FREE = "free"


# Order matters: the first matching pattern wins.
ROUTE_TABLE: tuple[tuple[str, EndpointAccess], ...] = (
    ("/quotes/random", EndpointAccess.FREE),
    ("/quotes", EndpointAccess.PROTECTED),
    ("/quotes/{quote_id:int}", EndpointAccess.PROTECTED),
)

_COMPILED_ROUTES: tuple[tuple[re.Pattern[str], EndpointAccess], ...] = tuple(
    (compile_path(path)[0], access) for path, access in ROUTE_TABLE
)


def normalize_path(path: str) -> str:
    """Strip a trailing slash (except for the root path)."""
    if len(path) > 1 and path.endswith("/"):
        return path.rstrip("/") or "/"
    return path or "/"


def classify(path: str) -> EndpointAccess:
    """Classify a prefix-relative request path.

    Args:
        path: Request path with the API prefix removed (e.g. ``/quotes/random``).

    Returns:
        EndpointAccess.INVALID when no route matches, otherwise the route's access.

    Examples:
        >>> classify("/quotes/random")
        <EndpointAccess.FREE: 'free'>
        >>> classify("/quotes/7")
        <EndpointAccess.PROTECTED: 'protected'>
        >>> classify("/quotes/abc")
        <EndpointAccess.INVALID: 'invalid'>
    """
    normalized = normalize_path(path)
    for pattern, access in _COMPILED_ROUTES:
        if pattern.match(normalized):
            return access
    return EndpointAccess.INVALID
