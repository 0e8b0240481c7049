from __future__ import annotations

from animequotes.api.routes.health import router as health_router
from animequotes.api.routes.quotes import router as quotes_router

__all__ = ["health_router", "quotes_router"]
