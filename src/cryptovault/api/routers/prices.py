"""Price lookup endpoints."""

from fastapi import APIRouter, Depends, Query

from cryptovault.api.deps import get_price_service
from cryptovault.api.schemas import (
    PricesResponse,
    QuoteResponse,
    RateLimitStatusResponse,
    ReloadRequest,
)
from cryptovault.core.symbols import normalize_symbols
from cryptovault.domain.models import PriceQuote
from cryptovault.services import PriceCacheService

router = APIRouter(prefix="/prices", tags=["prices"])


def _split_symbols(symbols: list[str]) -> list[str]:
    return normalize_symbols([s for raw in symbols for s in raw.split(",")])


def _to_response(requested: list[str], quotes: dict[str, PriceQuote]) -> PricesResponse:
    return PricesResponse(
        quotes={symbol: QuoteResponse.model_validate(q) for symbol, q in quotes.items()},
        missing=[s for s in requested if s not in quotes],
    )


@router.get("", response_model=PricesResponse)
def get_prices(
    symbols: list[str] = Query(..., description="Symbols, repeated or comma-separated"),
    detailed: bool = Query(False, description="Include name and market cap"),
    prices: PriceCacheService = Depends(get_price_service),
) -> PricesResponse:
    """Cached prices, refreshed upstream only when the rate limiter allows."""
    requested = _split_symbols(symbols)
    quotes = prices.get_market_data(requested) if detailed else prices.get_quotes(requested)
    return _to_response(requested, quotes)


@router.post("/reload", response_model=PricesResponse)
def reload_prices(
    request: ReloadRequest,
    prices: PriceCacheService = Depends(get_price_service),
) -> PricesResponse:
    """Force an upstream refresh; 429 with the wait time when rate limited."""
    requested = _split_symbols(request.symbols)
    return _to_response(requested, prices.reload(requested))


@router.get("/status", response_model=dict[str, RateLimitStatusResponse])
def get_rate_limit_status(
    prices: PriceCacheService = Depends(get_price_service),
) -> dict[str, RateLimitStatusResponse]:
    """Limiter state per provider chain."""
    return {
        name: RateLimitStatusResponse(**state)
        for name, state in prices.rate_limit_status().items()
    }
