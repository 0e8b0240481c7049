from __future__ import annotations

from pydantic import BaseModel, Field


class FormattedQuote(BaseModel):
    """Public shape of a quote."""

    anime: str = Field(..., description="Anime title")
    character: str = Field(..., description="Character who said the quote")
    content: str = Field(..., description="Quote text")


class QuotePage(BaseModel):
    """One page of the quote list endpoint."""

    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    quotes: list[FormattedQuote]
