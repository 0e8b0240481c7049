"""Create tables and load a small sample dataset.

Usage:
    python -m animequotes.db.seed [--owner NAME]

Prints one freshly issued API key. Keys are created out-of-band like this;
the API itself never writes to the database.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import secrets

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from animequotes.core.config import settings
from animequotes.core.logging import configure_logging
from animequotes.db import models
from animequotes.db.base import Base
from animequotes.db.session import get_async_engine, get_session_maker

logger = logging.getLogger(__name__)

SAMPLE_QUOTES: dict[str, dict[str, list[str]]] = {
    "Naruto": {
        "Naruto Uzumaki": [
            "I'm not gonna run away, I never go back on my word! That's my nindo: my ninja way!",
        ],
        "Kakashi Hatake": [
            "In the ninja world, those who break the rules are scum, that's true, "
            "but those who abandon their friends are worse than scum.",
        ],
    },
    "Fullmetal Alchemist: Brotherhood": {
        "Edward Elric": [
            "A lesson without pain is meaningless.",
        ],
        "Roy Mustang": [
            "Surely every person has something they can do that only they can do.",
        ],
    },
    "One Piece": {
        "Monkey D. Luffy": [
            "If you don't take risks, you can't create a future!",
        ],
    },
}


def generate_api_key(prefix: str, length: int) -> str:
    """Random key of exactly ``length`` characters starting with ``prefix``."""
    body_length = max(0, length - len(prefix))
    body = secrets.token_hex((body_length + 1) // 2)[:body_length]
    return f"{prefix}{body}"


async def create_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def load_sample_data(session_maker: async_sessionmaker) -> int:
    """Insert sample anime, characters and quotes that are not present yet.

    Returns:
        Number of quotes inserted.
    """
    inserted = 0
    async with session_maker() as session:
        for anime_name, characters in SAMPLE_QUOTES.items():
            anime = await session.scalar(select(models.Anime).where(models.Anime.name == anime_name))
            if anime is None:
                anime = models.Anime(name=anime_name)
                session.add(anime)
                await session.flush()
            for character_name, quotes in characters.items():
                character = await session.scalar(
                    select(models.AnimeCharacter).where(
                        models.AnimeCharacter.name == character_name,
                        models.AnimeCharacter.anime_id == anime.id,
                    )
                )
                if character is None:
                    character = models.AnimeCharacter(name=character_name, anime_id=anime.id)
                    session.add(character)
                    await session.flush()
                for content in quotes:
                    exists = await session.scalar(
                        select(models.Quote.id).where(models.Quote.content == content)
                    )
                    if exists is None:
                        session.add(
                            models.Quote(
                                content=content,
                                anime_id=anime.id,
                                anime_character_id=character.id,
                            )
                        )
                        inserted += 1
        await session.commit()
    return inserted


async def issue_api_key(session_maker: async_sessionmaker, *, owner: str) -> str:
    key = generate_api_key(settings.app.api_key_prefix, settings.app.api_key_min_length)
    async with session_maker() as session:
        session.add(models.ApiKey(key=key, owner=owner))
        await session.commit()
    return key


async def seed(owner: str) -> str:
    engine = get_async_engine(settings.store)
    session_maker = get_session_maker(settings.store)
    await create_tables(engine)
    inserted = await load_sample_data(session_maker)
    key = await issue_api_key(session_maker, owner=owner)
    logger.info("seed.completed", extra={"quotes_inserted": inserted, "owner": owner})
    await engine.dispose()
    return key


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the anime quotes database")
    parser.add_argument("--owner", default="local-dev", help="Owner recorded on the issued API key")
    args = parser.parse_args()

    configure_logging(settings.log)
    key = asyncio.run(seed(args.owner))
    print(f"API key for {args.owner}: {key}")


if __name__ == "__main__":
    main()
