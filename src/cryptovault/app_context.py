"""Application context for in-process service management.

Provides a centralized way to access all services without HTTP, for
scripts and background workers running next to the API.
"""

from pathlib import Path
from typing import Optional

from cryptovault.config.settings import Settings, set_settings, get_settings
from cryptovault.repositories.sqlalchemy.database import (
    init_db_with_path,
    get_session,
    get_session_factory,
)
from cryptovault.repositories.sqlalchemy import (
    SqlAlchemyEntryRepository,
    SqlAlchemyGrantRepository,
    SqlAlchemyProfileRepository,
    SqlAlchemyKeyValueRepository,
)
from cryptovault.services import (
    AccessGrantService,
    DataVisibilityService,
    EntryAggregator,
    JournalService,
    PortfolioMetricsEngine,
    PriceCacheService,
    PriceRefresher,
    RateLimiter,
    SharedEntryCache,
)
from cryptovault.services.price_cache_service import create_price_service


class AppContext:
    """
    Application context providing in-process access to all services.

    Session-bound services are created lazily and dropped on
    refresh_session(); the price service and shared-entry cache live for
    the whole context.
    """

    def __init__(self, data_dir: Optional[Path] = None):
        """
        Initialize application context.

        Args:
            data_dir: Optional data directory. If not provided, uses default.
        """
        self._data_dir = data_dir
        self._session = None
        self._initialized = False

        # Service instances (lazy initialized)
        self._journal: Optional[JournalService] = None
        self._grants: Optional[AccessGrantService] = None
        self._visibility: Optional[DataVisibilityService] = None
        self._aggregator: Optional[EntryAggregator] = None
        self._metrics: Optional[PortfolioMetricsEngine] = None
        self._prices: Optional[PriceCacheService] = None
        self._refresher: Optional[PriceRefresher] = None
        self._shared_cache: Optional[SharedEntryCache] = None

    def initialize(self, data_dir: Optional[Path] = None) -> None:
        """
        Initialize or reinitialize the application with a data directory.

        Args:
            data_dir: Data directory path. Uses default if not provided.
        """
        if data_dir:
            self._data_dir = data_dir

        settings = Settings(data_dir=self._data_dir)
        set_settings(settings)

        self.close()
        init_db_with_path(settings.get_data_dir() / "cryptovault.db")

        self._prices = None
        self._shared_cache = None
        self._reset_session_services()
        self._initialized = True

    @property
    def is_initialized(self) -> bool:
        """Check if context is initialized."""
        return self._initialized

    @property
    def data_dir(self) -> Path:
        """Get the current data directory."""
        return get_settings().get_data_dir()

    def _get_session(self):
        """Get or create database session."""
        if self._session is None:
            self._session = get_session()
        return self._session

    def refresh_session(self) -> None:
        """Refresh the database session (call after external changes)."""
        if self._session:
            self._session.close()
        self._session = get_session()
        self._reset_session_services()

    def _reset_session_services(self) -> None:
        self._journal = None
        self._grants = None
        self._visibility = None
        self._aggregator = None
        self._metrics = None

    def _get_kv_repo(self) -> SqlAlchemyKeyValueRepository:
        return SqlAlchemyKeyValueRepository(get_session_factory())

    # Service accessors
    @property
    def journal(self) -> JournalService:
        if self._journal is None:
            self._journal = JournalService(SqlAlchemyEntryRepository(self._get_session()))
        return self._journal

    @property
    def grants(self) -> AccessGrantService:
        if self._grants is None:
            self._grants = AccessGrantService(
                grant_repo=SqlAlchemyGrantRepository(self._get_session()),
                profile_repo=SqlAlchemyProfileRepository(self._get_session()),
            )
        return self._grants

    @property
    def visibility(self) -> DataVisibilityService:
        if self._visibility is None:
            self._visibility = DataVisibilityService(self._get_kv_repo(), self.grants)
        return self._visibility

    @property
    def shared_cache(self) -> SharedEntryCache:
        if self._shared_cache is None:
            self._shared_cache = SharedEntryCache(get_settings().shared_entries_ttl_seconds)
        return self._shared_cache

    @property
    def aggregator(self) -> EntryAggregator:
        if self._aggregator is None:
            self._aggregator = EntryAggregator(
                entry_repo=SqlAlchemyEntryRepository(self._get_session()),
                grant_service=self.grants,
                visibility_service=self.visibility,
                shared_cache=self.shared_cache,
            )
        return self._aggregator

    @property
    def prices(self) -> PriceCacheService:
        """Get the PriceCacheService instance."""
        if self._prices is None:
            self._prices = create_price_service(get_settings(), self._get_kv_repo())
        return self._prices

    @property
    def metrics(self) -> PortfolioMetricsEngine:
        if self._metrics is None:
            self._metrics = PortfolioMetricsEngine(
                aggregator=self.aggregator,
                price_service=self.prices,
                min_position_usd=get_settings().min_position_usd,
            )
        return self._metrics

    def start_price_refresh(self) -> PriceRefresher:
        """Start background refresh for every symbol priced so far."""
        if self._refresher is None:
            settings = get_settings()
            prices = self.prices
            self._refresher = PriceRefresher(
                prices,
                symbol_source=lambda: prices.tracked_symbols,
                limiter=RateLimiter(
                    "refresh.passive",
                    self._get_kv_repo(),
                    min_interval_seconds=settings.passive_min_interval_seconds,
                    max_calls_per_window=settings.max_calls_per_window,
                    window_seconds=settings.rate_window_seconds,
                ),
                interval_seconds=settings.price_refresh_interval_seconds,
            )
        self._refresher.start()
        return self._refresher

    def close(self) -> None:
        """Clean up resources."""
        if self._refresher is not None:
            self._refresher.stop()
            self._refresher = None
        if self._prices is not None:
            self._prices.close()
            self._prices = None
            self._metrics = None
        if self._session:
            self._session.close()
            self._session = None
