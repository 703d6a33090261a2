"""Holdings, P&L and performance metrics from the combined entry stream."""

import calendar
import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from cryptovault.core.symbols import normalize_symbol
from cryptovault.core.timezone import now_utc, to_utc
from cryptovault.domain.models import Entry, EntryType, PriceQuote, TradeSide
from cryptovault.domain.views import (
    AssetSummary,
    CalendarDay,
    HeatmapCell,
    Holding,
    Performer,
    PnlCalendar,
    PnlHeatmap,
    PortfolioMetrics,
    WindowPnl,
)
from cryptovault.services.entry_aggregator import EntryAggregator
from cryptovault.services.price_cache_service import PriceCacheService

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
PCT_PLACES = Decimal("0.01")

# Rolling windows back from "now"
WINDOWS: dict[str, timedelta] = {
    "day": timedelta(days=1),
    "week": timedelta(days=7),
    "month": timedelta(days=30),
}


def holding_key(entry: Entry) -> str:
    return normalize_symbol(entry.symbol or entry.asset)


def build_holdings(entries: Iterable[Entry]) -> dict[str, Holding]:
    """
    Fold entries into per-asset holdings, oldest first.

    - spot buy: quantity grows and the weighted average is recomputed
      when the new quantity is positive
    - spot sell (any non-buy side): quantity shrinks, not clamped, average kept
    - wallet: quantity moves with no price effect
    - every entry's pnl adds to realized pnl
    """
    holdings: dict[str, Holding] = {}
    for entry in sorted(entries, key=lambda e: to_utc(e.date)):
        key = holding_key(entry)
        if not key:
            continue
        holding = holdings.setdefault(key, Holding(symbol=key))
        holding.entry_count += 1
        holding.realized_pnl += entry.pnl

        if entry.entry_type == EntryType.SPOT and entry.quantity and entry.price_usd:
            if entry.side == TradeSide.BUY:
                new_quantity = holding.quantity + entry.quantity
                if new_quantity > 0:
                    total_cost = holding.quantity * holding.average_price + entry.quantity * entry.price_usd
                    holding.average_price = total_cost / new_quantity
                holding.quantity = new_quantity
            else:
                holding.quantity -= entry.quantity
        elif entry.entry_type == EntryType.WALLET and entry.quantity:
            holding.quantity += entry.quantity
    return holdings


def summarize_assets(
    holdings: dict[str, Holding],
    quotes: dict[str, PriceQuote],
) -> list[AssetSummary]:
    """Value each holding at its quote, falling back to the average price."""
    summaries = []
    for symbol, holding in holdings.items():
        quote = quotes.get(symbol)
        current_price = quote.price if quote else holding.average_price
        cost_basis = holding.cost_basis
        current_value = holding.quantity * current_price if holding.quantity > 0 else ZERO
        unrealized = current_value - cost_basis
        summaries.append(
            AssetSummary(
                symbol=symbol,
                quantity=holding.quantity,
                average_price=holding.average_price,
                cost_basis=cost_basis,
                current_price=current_price,
                current_value=current_value,
                realized_pnl=holding.realized_pnl,
                unrealized_pnl=unrealized,
                total_pnl=holding.realized_pnl + unrealized,
                change_24h_pct=quote.change_24h_pct if quote else None,
                has_live_price=quote is not None,
            )
        )
    summaries.sort(key=lambda a: (a.current_value, a.symbol), reverse=True)
    return summaries


def net_invested(entries: Iterable[Entry]) -> Decimal:
    """Spot buy cost plus fees, minus spot sell proceeds net of fees."""
    total = ZERO
    for entry in entries:
        if entry.entry_type != EntryType.SPOT or entry.notional is None:
            continue
        if entry.side == TradeSide.BUY:
            total += entry.notional + entry.fees
        else:
            total -= entry.notional - entry.fees
    return total


def percentage(numerator: Decimal, denominator: Decimal) -> Decimal:
    if denominator == 0:
        return ZERO
    return (numerator / denominator * HUNDRED).quantize(PCT_PLACES)


def window_pnl(
    name: str,
    entries: list[Entry],
    assets: list[AssetSummary],
    now: datetime,
) -> WindowPnl:
    """
    Realized pnl of entries in the rolling window plus an unrealized estimate.

    The day window uses each asset's 24h change; week and month reuse the
    current unrealized snapshot. Neither is a historical valuation.
    """
    start = to_utc(now) - WINDOWS[name]
    end = to_utc(now)
    realized = sum(
        (e.pnl for e in entries if start <= to_utc(e.date) <= end),
        ZERO,
    )
    if name == "day":
        unrealized = sum(
            (
                a.current_value * a.change_24h_pct / HUNDRED
                for a in assets
                if a.change_24h_pct is not None and a.quantity > 0
            ),
            ZERO,
        )
    else:
        unrealized = sum((a.unrealized_pnl for a in assets), ZERO)
    return WindowPnl(window=name, realized=realized, unrealized=unrealized)


def pick_performers(
    assets: list[AssetSummary],
    min_position_usd: Decimal,
) -> tuple[Optional[Performer], Optional[Performer]]:
    """Best and worst unrealized return among positions above the dust floor."""
    eligible = [
        a for a in assets
        if a.cost_basis >= min_position_usd and a.unrealized_pct is not None
    ]
    if not eligible:
        return None, None
    best = max(eligible, key=lambda a: a.unrealized_pct)
    worst = min(eligible, key=lambda a: a.unrealized_pct)
    return (
        Performer(symbol=best.symbol, unrealized_pct=best.unrealized_pct, unrealized_pnl=best.unrealized_pnl),
        Performer(symbol=worst.symbol, unrealized_pct=worst.unrealized_pct, unrealized_pnl=worst.unrealized_pnl),
    )


def compute_metrics(
    entries: list[Entry],
    quotes: dict[str, PriceQuote],
    now: Optional[datetime] = None,
    min_position_usd: Decimal = Decimal("10"),
) -> PortfolioMetrics:
    """Portfolio-level aggregates over an explicit snapshot of entries and quotes."""
    now = now or now_utc()
    assets = summarize_assets(build_holdings(entries), quotes)

    total_value = sum((a.current_value for a in assets), ZERO)
    total_cost_basis = sum((a.cost_basis for a in assets), ZERO)
    total_realized = sum((a.realized_pnl for a in assets), ZERO)
    total_unrealized = sum((a.unrealized_pnl for a in assets), ZERO)
    total_pnl = total_realized + total_unrealized
    invested = net_invested(entries)
    denominator = max(abs(invested), total_cost_basis, Decimal("1"))

    trades = [e for e in entries if e.is_trade]
    wins = [e for e in trades if e.pnl > 0]
    trade_volume = sum((e.notional for e in trades if e.notional is not None), ZERO)
    best, worst = pick_performers(assets, min_position_usd)

    return PortfolioMetrics(
        total_value=total_value,
        total_cost_basis=total_cost_basis,
        total_realized_pnl=total_realized,
        total_unrealized_pnl=total_unrealized,
        total_pnl=total_pnl,
        total_pnl_pct=percentage(total_pnl, denominator),
        net_invested=invested,
        day=window_pnl("day", entries, assets, now),
        week=window_pnl("week", entries, assets, now),
        month=window_pnl("month", entries, assets, now),
        win_rate=percentage(Decimal(len(wins)), Decimal(len(trades))),
        trade_count=len(trades),
        average_trade_size=(trade_volume / len(trades)).quantize(PCT_PLACES) if trades else ZERO,
        best_performer=best,
        worst_performer=worst,
        assets=assets,
        as_of=now,
    )


def daily_pnl(entries: Iterable[Entry], year: int, month: int) -> PnlCalendar:
    """
    Realized P&L per UTC day for one month.

    Every day of the month is present, including days with no entries.
    Entries outside the month are ignored. Raises ValueError for an
    invalid month.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"month must be 1-12, got {month}")
    _, day_count = calendar.monthrange(year, month)
    days = {
        number: CalendarDay(day=date(year, month, number))
        for number in range(1, day_count + 1)
    }
    for entry in entries:
        when = to_utc(entry.date)
        if when.year != year or when.month != month:
            continue
        day = days[when.day]
        day.pnl += entry.pnl
        day.entry_count += 1
    return PnlCalendar(year=year, month=month, days=list(days.values()))


def pnl_heatmap(entries: Iterable[Entry]) -> PnlHeatmap:
    """Entry count and realized P&L by UTC weekday and hour."""
    cells = [HeatmapCell(weekday=w, hour=h) for w in range(7) for h in range(24)]
    heatmap = PnlHeatmap(cells=cells)
    for entry in entries:
        when = to_utc(entry.date)
        cell = heatmap.cell(when.weekday(), when.hour)
        cell.entry_count += 1
        cell.pnl += entry.pnl
    return heatmap


class PortfolioMetricsEngine:
    """
    Gathers a snapshot (combined entries + cached prices) and runs the
    pure metric functions over it.

    Price lookups go through the cache service, so a throttled or failing
    provider yields stale prices (or the average price) rather than an error.
    """

    def __init__(
        self,
        aggregator: EntryAggregator,
        price_service: PriceCacheService,
        min_position_usd: Decimal = Decimal("10"),
    ):
        self._aggregator = aggregator
        self._price_service = price_service
        self._min_position_usd = min_position_usd

    def entries(
        self,
        user_id: str,
        now: Optional[datetime] = None,
        include_shared: bool = True,
    ) -> list[Entry]:
        sourced = self._aggregator.get_combined_entries(user_id, now)
        return [s.entry for s in sourced if include_shared or not s.is_shared]

    def snapshot(
        self,
        user_id: str,
        now: Optional[datetime] = None,
        include_shared: bool = True,
    ) -> tuple[list[Entry], dict[str, PriceQuote]]:
        entries = self.entries(user_id, now, include_shared)
        open_symbols = [s for s, h in build_holdings(entries).items() if h.quantity > 0]
        quotes = self._price_service.get_quotes(open_symbols) if open_symbols else {}
        return entries, quotes

    def compute(
        self,
        user_id: str,
        now: Optional[datetime] = None,
        include_shared: bool = True,
    ) -> PortfolioMetrics:
        now = now or now_utc()
        entries, quotes = self.snapshot(user_id, now, include_shared)
        metrics = compute_metrics(entries, quotes, now, self._min_position_usd)
        logger.debug("Metrics for %s: %d entries, %d assets", user_id, len(entries), len(metrics.assets))
        return metrics

    def asset_summaries(
        self,
        user_id: str,
        now: Optional[datetime] = None,
        include_shared: bool = True,
    ) -> list[AssetSummary]:
        entries, quotes = self.snapshot(user_id, now, include_shared)
        return summarize_assets(build_holdings(entries), quotes)

    def daily_calendar(
        self,
        user_id: str,
        year: int,
        month: int,
        now: Optional[datetime] = None,
        include_shared: bool = True,
    ) -> PnlCalendar:
        return daily_pnl(self.entries(user_id, now, include_shared), year, month)

    def activity_heatmap(
        self,
        user_id: str,
        now: Optional[datetime] = None,
        include_shared: bool = True,
    ) -> PnlHeatmap:
        return pnl_heatmap(self.entries(user_id, now, include_shared))
