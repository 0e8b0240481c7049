"""SQLAlchemy async engine and session utilities."""
from __future__ import annotations

from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from animequotes.core.config import StoreSettings


@lru_cache
def _get_async_engine(database_url: str, database_echo: bool) -> AsyncEngine:
    return create_async_engine(database_url, echo=database_echo)


@lru_cache
def _get_session_maker(database_url: str, database_echo: bool) -> async_sessionmaker:
    engine = _get_async_engine(database_url, database_echo)
    return async_sessionmaker(engine, expire_on_commit=False)


def get_async_engine(store_settings: StoreSettings) -> AsyncEngine:
    if not store_settings.database_url:
        raise RuntimeError("STORE_DATABASE_URL is not configured")
    return _get_async_engine(store_settings.database_url, store_settings.database_echo)


def get_session_maker(store_settings: StoreSettings) -> async_sessionmaker:
    if not store_settings.database_url:
        raise RuntimeError("STORE_DATABASE_URL is not configured")
    return _get_session_maker(store_settings.database_url, store_settings.database_echo)
