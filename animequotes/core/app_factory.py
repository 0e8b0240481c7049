"""Application factory for the FastAPI app.

Centralizes app construction (stores, gate, middleware, handlers, routers).
Stores can be injected, which is how tests swap in the in-process counter
store and a fake record store.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from animequotes import __version__
from animequotes.adapters.counter_store import (
    AbstractCounterStore,
    InMemoryCounterStore,
    RedisCounterStore,
)
from animequotes.adapters.records import AbstractRecordStore, SqlRecordStore
from animequotes.api.routes import health_router, quotes_router
from animequotes.core.auth import CredentialValidator
from animequotes.core.config import Settings, settings as default_settings
from animequotes.core.exception_handlers import setup_exception_handlers
from animequotes.core.gate import RequestGate
from animequotes.core.logging import configure_logging
from animequotes.core.middleware import gate_middleware, request_id_middleware
from animequotes.core.openapi import apply_openapi_customizations
from animequotes.core.rate_limit import build_rate_limit_policies
from animequotes.db.session import get_session_maker
from animequotes.services.quote_service import QuoteService

logger = logging.getLogger(__name__)


def build_counter_store(cfg: Settings) -> AbstractCounterStore:
    if cfg.store.redis_url:
        return RedisCounterStore.from_url(cfg.store.redis_url)
    logger.warning(
        "counter_store.in_memory",
        extra={"hint": "Set STORE_REDIS_URL to share counters across workers"},
    )
    return InMemoryCounterStore()


def build_record_store(cfg: Settings) -> AbstractRecordStore:
    return SqlRecordStore(get_session_maker(cfg.store))


def build_gate(
    cfg: Settings,
    counter_store: AbstractCounterStore,
    record_store: AbstractRecordStore,
) -> RequestGate:
    """Wire the credential validator and rate limit policies into a gate."""
    validator = CredentialValidator(
        counter_store=counter_store,
        record_store=record_store,
        prefix=cfg.app.api_key_prefix,
        min_length=cfg.app.api_key_min_length,
        cache_enabled=cfg.app.api_key_cache_enabled,
        cache_ttl_seconds=cfg.app.api_key_cache_ttl_seconds,
        timeout_seconds=cfg.app.store_timeout_seconds,
    )
    policies = build_rate_limit_policies(counter_store, cfg.app)
    return RequestGate(validator=validator, policies=policies)


def create_app(
    cfg: Settings | None = None,
    *,
    counter_store: AbstractCounterStore | None = None,
    record_store: AbstractRecordStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        cfg: Settings to use; the global settings when omitted.
        counter_store: Counter store override (Redis/in-process from settings otherwise).
        record_store: Record store override (SQL store from settings otherwise).

    Returns:
        Configured FastAPI app with stores, gate, middleware, handlers and routers.
    """
    cfg = cfg or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    counters = counter_store or build_counter_store(cfg)
    records = record_store or build_record_store(cfg)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await counters.close()
        await records.close()

    app = FastAPI(
        title="Anime Quotes API",
        description=(
            "Anime quotes. Random quotes are free and limited per client IP; "
            "listing and lookup by id require an ``x-api-key`` and are limited per key."
        ),
        version=__version__,
        debug=cfg.app.debug,
        lifespan=lifespan,
    )

    app.state.settings = cfg
    app.state.counter_store = counters
    app.state.record_store = records
    app.state.gate = build_gate(cfg, counters, records)
    app.state.quote_service = QuoteService(records, timeout_seconds=cfg.app.store_timeout_seconds)

    # Middleware: last added runs first, so request ids wrap the gate
    app.middleware("http")(gate_middleware)
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(quotes_router, prefix=cfg.app.api_prefix)
    app.include_router(health_router)

    apply_openapi_customizations(app, api_prefix=cfg.app.api_prefix)

    return app
