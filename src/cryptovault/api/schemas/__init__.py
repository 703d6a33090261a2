"""Pydantic schemas for API request/response."""

from cryptovault.api.schemas.profile import ProfileSummaryResponse
from cryptovault.api.schemas.entry import (
    EntryCreateRequest,
    EntryUpdateRequest,
    EntryResponse,
    EntryListResponse,
    SourcedEntryResponse,
    CombinedEntriesResponse,
)
from cryptovault.api.schemas.grant import (
    AccessRequestCreate,
    GrantResponse,
    GrantListResponse,
)
from cryptovault.api.schemas.source import DataSourceResponse, VisibilityUpdate
from cryptovault.api.schemas.price import (
    QuoteResponse,
    PricesResponse,
    ReloadRequest,
    RateLimitStatusResponse,
)
from cryptovault.api.schemas.portfolio import (
    AssetSummaryResponse,
    PerformerResponse,
    WindowPnlResponse,
    PortfolioMetricsResponse,
    AssetSummaryListResponse,
    CalendarDayResponse,
    PnlCalendarResponse,
    HeatmapCellResponse,
    PnlHeatmapResponse,
)

__all__ = [
    "ProfileSummaryResponse",
    "EntryCreateRequest",
    "EntryUpdateRequest",
    "EntryResponse",
    "EntryListResponse",
    "SourcedEntryResponse",
    "CombinedEntriesResponse",
    "AccessRequestCreate",
    "GrantResponse",
    "GrantListResponse",
    "DataSourceResponse",
    "VisibilityUpdate",
    "QuoteResponse",
    "PricesResponse",
    "ReloadRequest",
    "RateLimitStatusResponse",
    "AssetSummaryResponse",
    "PerformerResponse",
    "WindowPnlResponse",
    "PortfolioMetricsResponse",
    "AssetSummaryListResponse",
    "CalendarDayResponse",
    "PnlCalendarResponse",
    "HeatmapCellResponse",
    "PnlHeatmapResponse",
]
