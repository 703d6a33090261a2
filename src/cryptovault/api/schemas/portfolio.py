"""Pydantic schemas for portfolio endpoints."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class AssetSummaryResponse(BaseModel):
    """Valued holding for a single asset."""

    model_config = {"from_attributes": True}

    symbol: str
    quantity: Decimal
    average_price: Decimal
    cost_basis: Decimal
    current_price: Decimal
    current_value: Decimal
    realized_pnl: Decimal
    unrealized_pnl: Decimal
    total_pnl: Decimal
    unrealized_pct: Optional[Decimal] = None
    change_24h_pct: Optional[Decimal] = None
    has_live_price: bool


class PerformerResponse(BaseModel):
    """Best or worst performing asset."""

    model_config = {"from_attributes": True}

    symbol: str
    unrealized_pct: Decimal
    unrealized_pnl: Decimal


class WindowPnlResponse(BaseModel):
    """P&L over a rolling window."""

    model_config = {"from_attributes": True}

    window: str
    realized: Decimal
    unrealized: Decimal
    total: Decimal


class PortfolioMetricsResponse(BaseModel):
    """Portfolio-level aggregates."""

    model_config = {"from_attributes": True}

    total_value: Decimal
    total_cost_basis: Decimal
    total_realized_pnl: Decimal
    total_unrealized_pnl: Decimal
    total_pnl: Decimal
    total_pnl_pct: Decimal
    net_invested: Decimal
    day: WindowPnlResponse
    week: WindowPnlResponse
    month: WindowPnlResponse
    win_rate: Decimal
    trade_count: int
    average_trade_size: Decimal
    best_performer: Optional[PerformerResponse] = None
    worst_performer: Optional[PerformerResponse] = None
    assets: list[AssetSummaryResponse]
    as_of: Optional[datetime] = None


class AssetSummaryListResponse(BaseModel):
    """Per-asset holdings."""

    items: list[AssetSummaryResponse]


class CalendarDayResponse(BaseModel):
    """Realized P&L for one UTC day."""

    model_config = {"from_attributes": True}

    day: date
    pnl: Decimal
    entry_count: int


class PnlCalendarResponse(BaseModel):
    """Daily P&L for a month with month totals."""

    model_config = {"from_attributes": True}

    year: int
    month: int
    days: list[CalendarDayResponse]
    total_pnl: Decimal
    entry_count: int
    trading_days: int
    profitable_days: int
    win_rate: Decimal


class HeatmapCellResponse(BaseModel):
    model_config = {"from_attributes": True}

    weekday: int
    hour: int
    entry_count: int
    pnl: Decimal


class PnlHeatmapResponse(BaseModel):
    """Activity and P&L by UTC weekday (Monday = 0) and hour."""

    model_config = {"from_attributes": True}

    cells: list[HeatmapCellResponse]
    max_entry_count: int
    max_abs_pnl: Decimal
