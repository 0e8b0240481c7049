"""Quote lookups and response shaping.

``format_quote`` is a pure function: it flattens the joined record shape
{anime.name, anime_character.name, content} into {anime, character, content}
and maps an absent (or partially joined) record to None. It never raises and
never fills in defaults.
"""

from __future__ import annotations

import logging

from animequotes.adapters.records.base import AbstractRecordStore, QuoteRecord
from animequotes.adapters.timeouts import bounded
from animequotes.schemas.quote import FormattedQuote

logger = logging.getLogger(__name__)


def format_quote(record: QuoteRecord | None) -> FormattedQuote | None:
    """Shape a joined quote record for clients.

    Args:
        record: Quote with its anime and character joins, or None.

    Returns:
        FormattedQuote, or None when the record or one of its joins is absent.

    Examples:
        >>> format_quote(None) is None
        True
    """
    if record is None or record.anime is None or record.anime_character is None:
        return None
    return FormattedQuote(
        anime=record.anime.name,
        character=record.anime_character.name,
        content=record.content,
    )


class QuoteService:
    """Read quotes from the record store and return them formatted."""

    def __init__(self, store: AbstractRecordStore, *, timeout_seconds: float | None = None) -> None:
        self._store = store
        self._timeout = timeout_seconds

    async def random(self, *, anime: str | None = None, character: str | None = None) -> FormattedQuote | None:
        record = await bounded(
            self._store.random_quote(anime=anime, character=character),
            timeout=self._timeout,
            store="records",
            operation="random_quote",
        )
        return format_quote(record)

    async def by_id(self, quote_id: int) -> FormattedQuote | None:
        record = await bounded(
            self._store.get_quote(quote_id),
            timeout=self._timeout,
            store="records",
            operation="get_quote",
        )
        return format_quote(record)

    async def search(
        self,
        *,
        anime: str | None = None,
        character: str | None = None,
        page: int = 1,
        page_size: int = 5,
    ) -> list[FormattedQuote]:
        """Return page ``page`` (1-based) of matching quotes.

        Records with a missing join are dropped rather than exposed.
        """
        records = await bounded(
            self._store.list_quotes(
                anime=anime,
                character=character,
                offset=(page - 1) * page_size,
                limit=page_size,
            ),
            timeout=self._timeout,
            store="records",
            operation="list_quotes",
        )
        formatted = [format_quote(record) for record in records]
        dropped = sum(1 for quote in formatted if quote is None)
        if dropped:
            logger.warning("quotes.incomplete_records_dropped", extra={"dropped": dropped})
        return [quote for quote in formatted if quote is not None]
