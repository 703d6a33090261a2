"""View models for service outputs."""

from cryptovault.domain.views.entries import (
    OWN_SOURCE_ID,
    SourcedEntry,
    DataSource,
    GrantListing,
)
from cryptovault.domain.views.portfolio import (
    Holding,
    AssetSummary,
    Performer,
    WindowPnl,
    PortfolioMetrics,
    CalendarDay,
    PnlCalendar,
    HeatmapCell,
    PnlHeatmap,
)

__all__ = [
    "OWN_SOURCE_ID",
    "SourcedEntry",
    "DataSource",
    "GrantListing",
    "Holding",
    "AssetSummary",
    "Performer",
    "WindowPnl",
    "PortfolioMetrics",
    "CalendarDay",
    "PnlCalendar",
    "HeatmapCell",
    "PnlHeatmap",
]
