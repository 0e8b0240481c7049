"""Durable record store adapters (API keys and quotes, read-only)."""

from animequotes.adapters.records.base import (
    AbstractRecordStore,
    AnimeCharacterRecord,
    AnimeRecord,
    QuoteRecord,
)
from animequotes.adapters.records.sql import SqlRecordStore

__all__ = [
    "AbstractRecordStore",
    "AnimeCharacterRecord",
    "AnimeRecord",
    "QuoteRecord",
    "SqlRecordStore",
]
