"""Record store interface and the joined record shapes it returns.

The store is read-only from the API's perspective: keys and quotes are
created out-of-band (see ``animequotes.db.seed``).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class AnimeRecord:
    id: int
    name: str


@dataclass(frozen=True)
class AnimeCharacterRecord:
    id: int
    name: str
    anime_id: int


@dataclass(frozen=True)
class QuoteRecord:
    """Quote joined with its anime and character.

    ``anime`` or ``anime_character`` is None when the join found nothing;
    such a record is never exposed to clients.
    """

    id: int
    content: str
    anime_id: int
    anime_character_id: int
    anime: AnimeRecord | None
    anime_character: AnimeCharacterRecord | None


class AbstractRecordStore(ABC):
    """Read-only lookups against the durable database."""

    @abstractmethod
    async def api_key_exists(self, key: str) -> bool:
        """Return True when an API key with exactly this value is stored."""
        raise NotImplementedError

    @abstractmethod
    async def get_quote(self, quote_id: int) -> QuoteRecord | None:
        """Fetch one quote by id with its joins."""
        raise NotImplementedError

    @abstractmethod
    async def random_quote(
        self,
        *,
        anime: str | None = None,
        character: str | None = None,
    ) -> QuoteRecord | None:
        """Pick one random quote, optionally filtered by anime/character name."""
        raise NotImplementedError

    @abstractmethod
    async def list_quotes(
        self,
        *,
        anime: str | None = None,
        character: str | None = None,
        offset: int = 0,
        limit: int = 5,
    ) -> list[QuoteRecord]:
        """Return quotes ordered by id, optionally filtered by anime/character name."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release connections held by the store."""
        return None
