"""Service layer - business logic orchestration."""

from cryptovault.services.price_cache_store import PriceCacheStore
from cryptovault.services.rate_limiter import RateLimiter
from cryptovault.services.price_cache_service import PriceCacheService, PriceChannel, build_channel
from cryptovault.services.price_refresher import PriceRefresher
from cryptovault.services.access_grant_service import AccessGrantService
from cryptovault.services.visibility_service import DataVisibilityService
from cryptovault.services.journal_service import JournalService, EntryCreate, EntryUpdate
from cryptovault.services.entry_aggregator import (
    EntryAggregator,
    SharedEntryCache,
    combine_sources,
    grant_allows,
)
from cryptovault.services.portfolio_metrics import (
    PortfolioMetricsEngine,
    build_holdings,
    summarize_assets,
    compute_metrics,
    daily_pnl,
    pnl_heatmap,
)

__all__ = [
    "PriceCacheStore",
    "RateLimiter",
    "PriceCacheService",
    "PriceChannel",
    "build_channel",
    "PriceRefresher",
    "AccessGrantService",
    "DataVisibilityService",
    "JournalService",
    "EntryCreate",
    "EntryUpdate",
    "EntryAggregator",
    "SharedEntryCache",
    "combine_sources",
    "grant_allows",
    "PortfolioMetricsEngine",
    "build_holdings",
    "summarize_assets",
    "compute_metrics",
    "daily_pnl",
    "pnl_heatmap",
]
