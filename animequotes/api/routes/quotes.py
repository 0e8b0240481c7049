"""Quote endpoints.

Access control and rate limiting happen in the request gate before these
handlers run; see ``animequotes.core.endpoints.ROUTE_TABLE`` for which routes
require an API key.
"""

from fastapi import APIRouter, Depends, Path, Query, Request

from animequotes.core.errors import NotFoundAppError
from animequotes.schemas.quote import FormattedQuote, QuotePage
from animequotes.services.quote_service import QuoteService

router = APIRouter(tags=["Quotes"])

# Largest id a SQL integer column holds; larger ids cannot exist.
MAX_QUOTE_ID = 2**63 - 1
MAX_PAGE = 1_000_000


def get_quote_service(request: Request) -> QuoteService:
    return request.app.state.quote_service


@router.get("/quotes/random", response_model=FormattedQuote)
async def random_quote(
    anime: str | None = Query(None, description="Only quotes from this anime"),
    character: str | None = Query(None, description="Only quotes by this character"),
    service: QuoteService = Depends(get_quote_service),
) -> FormattedQuote:
    """Return one random quote. Free endpoint, limited per client IP."""
    quote = await service.random(anime=anime, character=character)
    if quote is None:
        raise NotFoundAppError(code="quote_not_found", message="No quote found")
    return quote


@router.get("/quotes", response_model=QuotePage)
async def list_quotes(
    request: Request,
    anime: str | None = Query(None, description="Only quotes from this anime"),
    character: str | None = Query(None, description="Only quotes by this character"),
    page: int = Query(1, ge=1, le=MAX_PAGE, description="1-based page number"),
    service: QuoteService = Depends(get_quote_service),
) -> QuotePage:
    """Return a page of quotes. Requires an API key."""
    page_size = request.app.state.settings.app.quotes_page_size
    quotes = await service.search(anime=anime, character=character, page=page, page_size=page_size)
    return QuotePage(page=page, page_size=page_size, quotes=quotes)


@router.get("/quotes/{quote_id}", response_model=FormattedQuote)
async def get_quote(
    quote_id: int = Path(..., le=MAX_QUOTE_ID),
    service: QuoteService = Depends(get_quote_service),
) -> FormattedQuote:
    """Return one quote by id. Requires an API key."""
    quote = await service.by_id(quote_id)
    if quote is None:
        raise NotFoundAppError(code="quote_not_found", message="Quote not found")
    return quote
