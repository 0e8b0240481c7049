"""SQLAlchemy-backed record store.

Anime and character filters are case-insensitive exact name matches. Database
errors surface as ``StoreUnavailableError`` so the gate can fail closed.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from animequotes.adapters.records.base import (
    AbstractRecordStore,
    AnimeCharacterRecord,
    AnimeRecord,
    QuoteRecord,
)
from animequotes.core.errors import StoreUnavailableError
from animequotes.db import models

logger = logging.getLogger(__name__)


def _to_record(row: models.Quote) -> QuoteRecord:
    anime = row.anime
    character = row.anime_character
    return QuoteRecord(
        id=row.id,
        content=row.content,
        anime_id=row.anime_id,
        anime_character_id=row.anime_character_id,
        anime=AnimeRecord(id=anime.id, name=anime.name) if anime is not None else None,
        anime_character=(
            AnimeCharacterRecord(id=character.id, name=character.name, anime_id=character.anime_id)
            if character is not None
            else None
        ),
    )


def _quote_query(anime: str | None, character: str | None) -> Select:
    stmt = select(models.Quote).options(
        selectinload(models.Quote.anime),
        selectinload(models.Quote.anime_character),
    )
    if anime:
        stmt = stmt.join(models.Quote.anime).where(func.lower(models.Anime.name) == anime.lower())
    if character:
        stmt = stmt.join(models.Quote.anime_character).where(
            func.lower(models.AnimeCharacter.name) == character.lower()
        )
    return stmt


class SqlRecordStore(AbstractRecordStore):
    """Record store reading API keys and quotes through an async session maker."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_maker() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.error(
                "record_store.error",
                extra={"operation": operation, "error_type": type(exc).__name__},
            )
            raise StoreUnavailableError(
                details={"store": "records", "operation": operation},
            ) from exc

    async def api_key_exists(self, key: str) -> bool:
        async with self._session("api_key_exists") as session:
            stmt = select(models.ApiKey.id).where(models.ApiKey.key == key).limit(1)
            return (await session.scalar(stmt)) is not None

    async def get_quote(self, quote_id: int) -> QuoteRecord | None:
        async with self._session("get_quote") as session:
            stmt = _quote_query(None, None).where(models.Quote.id == quote_id)
            row = await session.scalar(stmt)
            return _to_record(row) if row is not None else None

    async def random_quote(
        self,
        *,
        anime: str | None = None,
        character: str | None = None,
    ) -> QuoteRecord | None:
        async with self._session("random_quote") as session:
            stmt = _quote_query(anime, character).order_by(func.random()).limit(1)
            row = await session.scalar(stmt)
            return _to_record(row) if row is not None else None

    async def list_quotes(
        self,
        *,
        anime: str | None = None,
        character: str | None = None,
        offset: int = 0,
        limit: int = 5,
    ) -> list[QuoteRecord]:
        async with self._session("list_quotes") as session:
            stmt = _quote_query(anime, character).order_by(models.Quote.id).offset(offset).limit(limit)
            rows = (await session.scalars(stmt)).all()
            return [_to_record(row) for row in rows]
