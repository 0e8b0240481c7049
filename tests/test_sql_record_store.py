"""Tests for the SQLAlchemy record store against a temporary SQLite file."""
from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from animequotes.adapters.records.sql import SqlRecordStore
from animequotes.core.errors import StoreUnavailableError
from animequotes.db import models
from animequotes.db.base import Base
from tests.fakes import UNKNOWN_KEY, VALID_KEY


async def _seeded_store(tmp_path: Path) -> tuple[AsyncEngine, SqlRecordStore]:
    db_url = "sqlite+aiosqlite:///" + str(tmp_path / "quotes.db")
    engine = create_async_engine(db_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, expire_on_commit=False)
    async with session_maker() as session:
        session.add_all(
            [
                models.ApiKey(id=1, key=VALID_KEY, owner="tests"),
                models.Anime(id=1, name="Naruto"),
                models.Anime(id=2, name="Fullmetal Alchemist: Brotherhood"),
                models.AnimeCharacter(id=3, name="Naruto Uzumaki", anime_id=1),
                models.AnimeCharacter(id=4, name="Edward Elric", anime_id=2),
                models.Quote(id=7, content="Believe it!", anime_id=1, anime_character_id=3),
                models.Quote(id=8, content="A lesson without pain is meaningless.", anime_id=2, anime_character_id=4),
                models.Quote(id=10, content="Dattebayo!", anime_id=1, anime_character_id=3),
                # SQLite does not enforce foreign keys unless asked, so this row
                # points at a character that does not exist.
                models.Quote(id=9, content="Orphaned.", anime_id=1, anime_character_id=99),
            ]
        )
        await session.commit()
    return engine, SqlRecordStore(session_maker)


@pytest.mark.asyncio
async def test_api_key_exists(tmp_path: Path) -> None:
    engine, store = await _seeded_store(tmp_path)
    try:
        assert await store.api_key_exists(VALID_KEY) is True
        assert await store.api_key_exists(UNKNOWN_KEY) is False
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_get_quote_loads_joins(tmp_path: Path) -> None:
    engine, store = await _seeded_store(tmp_path)
    try:
        record = await store.get_quote(7)

        assert record is not None
        assert record.content == "Believe it!"
        assert record.anime is not None and record.anime.name == "Naruto"
        assert record.anime_character is not None
        assert record.anime_character.name == "Naruto Uzumaki"
        assert await store.get_quote(12345) is None
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_get_quote_with_missing_character(tmp_path: Path) -> None:
    engine, store = await _seeded_store(tmp_path)
    try:
        record = await store.get_quote(9)

        assert record is not None
        assert record.anime_character is None
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_list_quotes_filters_case_insensitively(tmp_path: Path) -> None:
    engine, store = await _seeded_store(tmp_path)
    try:
        by_anime = await store.list_quotes(anime="NARUTO")
        by_character = await store.list_quotes(character="edward elric")
        both = await store.list_quotes(anime="naruto", character="naruto uzumaki")

        assert [record.id for record in by_anime] == [7, 9, 10]
        assert [record.id for record in by_character] == [8]
        assert [record.id for record in both] == [7, 10]
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_list_quotes_offset_and_limit(tmp_path: Path) -> None:
    engine, store = await _seeded_store(tmp_path)
    try:
        first = await store.list_quotes(offset=0, limit=2)
        second = await store.list_quotes(offset=2, limit=2)
        beyond = await store.list_quotes(offset=50, limit=2)

        assert [record.id for record in first] == [7, 8]
        assert [record.id for record in second] == [9, 10]
        assert beyond == []
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_random_quote_respects_filters(tmp_path: Path) -> None:
    engine, store = await _seeded_store(tmp_path)
    try:
        record = await store.random_quote(character="Edward Elric")
        anything = await store.random_quote()

        assert record is not None and record.id == 8
        assert anything is not None and anything.id in {7, 8, 9, 10}
        assert await store.random_quote(anime="Bleach") is None
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_database_errors_become_store_unavailable(tmp_path: Path) -> None:
    # No tables were created in this database.
    engine = create_async_engine("sqlite+aiosqlite:///" + str(tmp_path / "empty.db"))
    store = SqlRecordStore(async_sessionmaker(engine, expire_on_commit=False))
    try:
        with pytest.raises(StoreUnavailableError) as exc_info:
            await store.api_key_exists(VALID_KEY)

        assert exc_info.value.details["operation"] == "api_key_exists"
        assert isinstance(exc_info.value.__cause__, OperationalError)
    finally:
        await engine.dispose()
