"""Pydantic schemas for entry endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from cryptovault.domain.models.enums import Currency, EntryType, TradeSide
from cryptovault.api.schemas.profile import ProfileSummaryResponse


class EntryCreateRequest(BaseModel):
    """Request schema for creating an entry."""

    entry_type: EntryType = Field(..., description="Entry type")
    asset: str = Field(..., min_length=1, max_length=64, description="Asset identifier")
    symbol: Optional[str] = Field(default=None, max_length=32, description="Display symbol")
    date: Optional[datetime] = Field(default=None, description="Activity time; defaults to now")
    quantity: Optional[Decimal] = Field(default=None, gt=0)
    price_usd: Optional[Decimal] = Field(default=None, gt=0, description="USD price per unit")
    fees: Decimal = Field(default=Decimal("0"), ge=0)
    pnl: Decimal = Field(default=Decimal("0"), description="Realized P&L in USD")
    side: Optional[TradeSide] = None
    leverage: Optional[int] = Field(default=None, ge=1, le=1000, description="Futures only")
    currency: Currency = Currency.USD
    is_personal: bool = Field(default=False, description="Never shared when true")
    notes: Optional[str] = Field(default=None, max_length=2000)
    platform: Optional[str] = Field(default=None, max_length=64)

    @field_validator("symbol")
    @classmethod
    def uppercase_symbol(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v else None


class EntryUpdateRequest(BaseModel):
    """Request schema for updating an entry (partial update)."""

    entry_type: Optional[EntryType] = None
    asset: Optional[str] = Field(default=None, min_length=1, max_length=64)
    symbol: Optional[str] = Field(default=None, max_length=32)
    date: Optional[datetime] = None
    quantity: Optional[Decimal] = Field(default=None, gt=0)
    price_usd: Optional[Decimal] = Field(default=None, gt=0)
    fees: Optional[Decimal] = Field(default=None, ge=0)
    pnl: Optional[Decimal] = None
    side: Optional[TradeSide] = None
    leverage: Optional[int] = Field(default=None, ge=1, le=1000)
    currency: Optional[Currency] = None
    is_personal: Optional[bool] = None
    notes: Optional[str] = Field(default=None, max_length=2000)
    platform: Optional[str] = Field(default=None, max_length=64)

    @field_validator("symbol")
    @classmethod
    def uppercase_symbol(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v else None


class EntryResponse(BaseModel):
    """Response schema for a single entry."""

    model_config = {"from_attributes": True}

    id: str
    owner_id: str
    entry_type: EntryType
    asset: str
    symbol: Optional[str] = None
    date: datetime
    quantity: Optional[Decimal] = None
    price_usd: Optional[Decimal] = None
    fees: Decimal
    pnl: Decimal
    side: Optional[TradeSide] = None
    leverage: Optional[int] = None
    currency: Currency
    is_personal: bool
    notes: Optional[str] = None
    platform: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class EntryListResponse(BaseModel):
    """Response schema for the user's own entries."""

    items: list[EntryResponse]
    total: int


class SourcedEntryResponse(BaseModel):
    """An entry in the combined stream, tagged with its source."""

    model_config = {"from_attributes": True}

    entry: EntryResponse
    source_id: str
    is_shared: bool
    sharer: Optional[ProfileSummaryResponse] = None


class CombinedEntriesResponse(BaseModel):
    """Response schema for own plus shared entries."""

    items: list[SourcedEntryResponse]
    total: int
    shared_count: int
