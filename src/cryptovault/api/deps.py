"""Dependency injection for FastAPI."""

import threading
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from cryptovault.config.settings import get_settings
from cryptovault.repositories.sqlalchemy.database import get_db, get_session_factory
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
    SharedEntryCache,
)
from cryptovault.services.price_cache_service import create_price_service

# Process-wide singletons: caches and limiters must outlive a request
_singletons_lock = threading.Lock()
_price_service: Optional[PriceCacheService] = None
_shared_entry_cache: Optional[SharedEntryCache] = None


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Identity supplied by the upstream auth gateway."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()


def get_entry_repo(db: Session = Depends(get_db)) -> SqlAlchemyEntryRepository:
    """Provide EntryRepository instance."""
    return SqlAlchemyEntryRepository(db)


def get_grant_repo(db: Session = Depends(get_db)) -> SqlAlchemyGrantRepository:
    """Provide GrantRepository instance."""
    return SqlAlchemyGrantRepository(db)


def get_profile_repo(db: Session = Depends(get_db)) -> SqlAlchemyProfileRepository:
    """Provide ProfileRepository instance."""
    return SqlAlchemyProfileRepository(db)


def get_kv_repo() -> SqlAlchemyKeyValueRepository:
    """Provide KeyValueRepository instance."""
    return SqlAlchemyKeyValueRepository(get_session_factory())


def get_price_service() -> PriceCacheService:
    """Provide the shared PriceCacheService."""
    global _price_service
    with _singletons_lock:
        if _price_service is None:
            _price_service = create_price_service(get_settings(), get_kv_repo())
        return _price_service


def get_shared_entry_cache() -> SharedEntryCache:
    """Provide the shared cache of entries read through grants."""
    global _shared_entry_cache
    with _singletons_lock:
        if _shared_entry_cache is None:
            _shared_entry_cache = SharedEntryCache(get_settings().shared_entries_ttl_seconds)
        return _shared_entry_cache


def reset_singletons() -> None:
    """Drop process-wide services (for reconfiguration), closing their HTTP client."""
    global _price_service, _shared_entry_cache
    with _singletons_lock:
        if _price_service is not None:
            _price_service.close()
        _price_service = None
        _shared_entry_cache = None


def get_journal_service(
    entry_repo: SqlAlchemyEntryRepository = Depends(get_entry_repo),
) -> JournalService:
    """Provide JournalService instance."""
    return JournalService(entry_repo=entry_repo)


def get_grant_service(
    grant_repo: SqlAlchemyGrantRepository = Depends(get_grant_repo),
    profile_repo: SqlAlchemyProfileRepository = Depends(get_profile_repo),
) -> AccessGrantService:
    """Provide AccessGrantService instance."""
    return AccessGrantService(grant_repo=grant_repo, profile_repo=profile_repo)


def get_visibility_service(
    kv_repo: SqlAlchemyKeyValueRepository = Depends(get_kv_repo),
    grant_service: AccessGrantService = Depends(get_grant_service),
) -> DataVisibilityService:
    """Provide DataVisibilityService instance."""
    return DataVisibilityService(storage=kv_repo, grant_service=grant_service)


def get_entry_aggregator(
    entry_repo: SqlAlchemyEntryRepository = Depends(get_entry_repo),
    grant_service: AccessGrantService = Depends(get_grant_service),
    visibility_service: DataVisibilityService = Depends(get_visibility_service),
    shared_cache: SharedEntryCache = Depends(get_shared_entry_cache),
) -> EntryAggregator:
    """Provide EntryAggregator instance."""
    return EntryAggregator(
        entry_repo=entry_repo,
        grant_service=grant_service,
        visibility_service=visibility_service,
        shared_cache=shared_cache,
    )


def get_metrics_engine(
    aggregator: EntryAggregator = Depends(get_entry_aggregator),
    price_service: PriceCacheService = Depends(get_price_service),
) -> PortfolioMetricsEngine:
    """Provide PortfolioMetricsEngine instance."""
    return PortfolioMetricsEngine(
        aggregator=aggregator,
        price_service=price_service,
        min_position_usd=get_settings().min_position_usd,
    )
