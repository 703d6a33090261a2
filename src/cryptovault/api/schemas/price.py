"""Pydantic schemas for price endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class QuoteResponse(BaseModel):
    """Latest known price for a symbol."""

    model_config = {"from_attributes": True}

    symbol: str
    price: Decimal
    source: str
    as_of: datetime
    change_24h_pct: Optional[Decimal] = None
    name: Optional[str] = None
    market_cap: Optional[Decimal] = None


class PricesResponse(BaseModel):
    """Quotes keyed by normalised symbol; unpriced symbols are listed as missing."""

    quotes: dict[str, QuoteResponse]
    missing: list[str] = Field(default_factory=list)


class ReloadRequest(BaseModel):
    """Request schema for a manual price reload."""

    symbols: list[str] = Field(..., min_length=1)


class RateLimitStatusResponse(BaseModel):
    """Limiter state for one provider chain."""

    can_call: bool
    seconds_until_next_call: float
    call_count: int
    max_calls_per_window: int
    in_flight: bool
