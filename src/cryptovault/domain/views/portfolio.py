"""View models for portfolio and analysis outputs."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional


@dataclass
class Holding:
    """Running per-asset position built from the entry stream."""

    symbol: str
    quantity: Decimal = field(default_factory=lambda: Decimal("0"))
    average_price: Decimal = field(default_factory=lambda: Decimal("0"))
    realized_pnl: Decimal = field(default_factory=lambda: Decimal("0"))
    entry_count: int = 0

    @property
    def cost_basis(self) -> Decimal:
        """quantity * average price while the position is open, else 0."""
        if self.quantity <= 0:
            return Decimal("0")
        return self.quantity * self.average_price


@dataclass
class AssetSummary:
    """Valued holding for a single asset."""

    symbol: str
    quantity: Decimal
    average_price: Decimal
    cost_basis: Decimal
    current_price: Decimal
    current_value: Decimal
    realized_pnl: Decimal
    unrealized_pnl: Decimal
    total_pnl: Decimal
    change_24h_pct: Optional[Decimal] = None
    has_live_price: bool = False

    @property
    def unrealized_pct(self) -> Optional[Decimal]:
        if self.cost_basis <= 0:
            return None
        return (self.unrealized_pnl / self.cost_basis * Decimal("100")).quantize(Decimal("0.01"))


@dataclass
class Performer:
    """Best or worst performing asset by unrealized return."""

    symbol: str
    unrealized_pct: Decimal
    unrealized_pnl: Decimal


@dataclass
class WindowPnl:
    """Realized plus approximated unrealized P&L over a rolling window."""

    window: str
    realized: Decimal = field(default_factory=lambda: Decimal("0"))
    unrealized: Decimal = field(default_factory=lambda: Decimal("0"))

    @property
    def total(self) -> Decimal:
        return self.realized + self.unrealized


@dataclass
class PortfolioMetrics:
    """Portfolio-level aggregates."""

    total_value: Decimal = field(default_factory=lambda: Decimal("0"))
    total_cost_basis: Decimal = field(default_factory=lambda: Decimal("0"))
    total_realized_pnl: Decimal = field(default_factory=lambda: Decimal("0"))
    total_unrealized_pnl: Decimal = field(default_factory=lambda: Decimal("0"))
    total_pnl: Decimal = field(default_factory=lambda: Decimal("0"))
    total_pnl_pct: Decimal = field(default_factory=lambda: Decimal("0"))
    net_invested: Decimal = field(default_factory=lambda: Decimal("0"))
    day: WindowPnl = field(default_factory=lambda: WindowPnl(window="day"))
    week: WindowPnl = field(default_factory=lambda: WindowPnl(window="week"))
    month: WindowPnl = field(default_factory=lambda: WindowPnl(window="month"))
    win_rate: Decimal = field(default_factory=lambda: Decimal("0"))
    trade_count: int = 0
    average_trade_size: Decimal = field(default_factory=lambda: Decimal("0"))
    best_performer: Optional[Performer] = None
    worst_performer: Optional[Performer] = None
    assets: list[AssetSummary] = field(default_factory=list)
    as_of: Optional[datetime] = None


@dataclass
class CalendarDay:
    """Realized P&L and entry count for one UTC calendar day."""

    day: date
    pnl: Decimal = field(default_factory=lambda: Decimal("0"))
    entry_count: int = 0


@dataclass
class PnlCalendar:
    """One month of daily P&L, every day present, plus month totals."""

    year: int
    month: int
    days: list[CalendarDay] = field(default_factory=list)

    @property
    def total_pnl(self) -> Decimal:
        return sum((d.pnl for d in self.days), Decimal("0"))

    @property
    def entry_count(self) -> int:
        return sum(d.entry_count for d in self.days)

    @property
    def trading_days(self) -> int:
        return sum(1 for d in self.days if d.entry_count > 0)

    @property
    def profitable_days(self) -> int:
        return sum(1 for d in self.days if d.pnl > 0)

    @property
    def win_rate(self) -> Decimal:
        """Profitable days as a percentage of days with any entry."""
        if not self.trading_days:
            return Decimal("0")
        return (Decimal(self.profitable_days) / Decimal(self.trading_days) * Decimal("100")).quantize(
            Decimal("0.01")
        )


@dataclass
class HeatmapCell:
    """Entries and P&L falling in one weekday/hour slot (UTC, Monday = 0)."""

    weekday: int
    hour: int
    entry_count: int = 0
    pnl: Decimal = field(default_factory=lambda: Decimal("0"))


@dataclass
class PnlHeatmap:
    """All 7 x 24 weekday/hour cells, weekday-major."""

    cells: list[HeatmapCell] = field(default_factory=list)

    @property
    def max_entry_count(self) -> int:
        return max((c.entry_count for c in self.cells), default=0)

    @property
    def max_abs_pnl(self) -> Decimal:
        return max((abs(c.pnl) for c in self.cells), default=Decimal("0"))

    def cell(self, weekday: int, hour: int) -> HeatmapCell:
        return self.cells[weekday * 24 + hour]
