"""
Pytest configuration and fixtures for the crypto journal tests.

This module provides:
- In-memory SQLite database fixtures
- A controllable clock for TTL and rate limit tests
- Scripted price providers with no network access
- Profile, repository and service fixtures
- Factory helpers for entries and grants
"""

import uuid
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from cryptovault.main import app
from cryptovault.api.deps import (
    get_kv_repo,
    get_price_service,
    get_shared_entry_cache,
)
from cryptovault.repositories.sqlalchemy.database import Base, get_db
# Import ORM models to register them with Base before creating tables
from cryptovault.repositories.sqlalchemy import orm_models  # noqa: F401
from cryptovault.repositories.sqlalchemy import (
    SqlAlchemyEntryRepository,
    SqlAlchemyGrantRepository,
    SqlAlchemyProfileRepository,
    SqlAlchemyKeyValueRepository,
)
from cryptovault.providers import ProviderChain
from cryptovault.services import (
    AccessGrantService,
    DataVisibilityService,
    EntryAggregator,
    JournalService,
    PortfolioMetricsEngine,
    PriceCacheService,
    SharedEntryCache,
    build_channel,
)
from cryptovault.services.journal_service import EntryCreate
from cryptovault.domain.models import (
    AccessGrant,
    Entry,
    EntryType,
    GrantFilters,
    PriceQuote,
    Profile,
    TradeSide,
)
from cryptovault.core.timezone import UTC, from_timestamp
from cryptovault.config.settings import reset_settings


# =============================================================================
# TIME HELPERS
# =============================================================================

# 2024-06-15 14:30:00 UTC
START_TS = 1718461800.0


def utc_datetime(
    year: int,
    month: int,
    day: int,
    hour: int = 10,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """Create an aware UTC datetime."""
    return UTC.localize(datetime(year, month, day, hour, minute, second))


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, start: float = START_TS):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def as_datetime(self) -> datetime:
        return from_timestamp(self.now)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fixed_now(clock) -> datetime:
    """Fixed 'now' matching the fake clock start."""
    return clock.as_datetime()


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with shared in-memory SQLite."""
    # Reset settings for clean state
    reset_settings()

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def session_factory(test_engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def test_session(session_factory) -> Session:
    """Create test database session."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# REPOSITORY FIXTURES
# =============================================================================


@pytest.fixture
def entry_repo(test_session) -> SqlAlchemyEntryRepository:
    return SqlAlchemyEntryRepository(test_session)


@pytest.fixture
def grant_repo(test_session) -> SqlAlchemyGrantRepository:
    return SqlAlchemyGrantRepository(test_session)


@pytest.fixture
def profile_repo(test_session) -> SqlAlchemyProfileRepository:
    return SqlAlchemyProfileRepository(test_session)


@pytest.fixture
def kv_repo(session_factory) -> SqlAlchemyKeyValueRepository:
    return SqlAlchemyKeyValueRepository(session_factory)


class MemoryKeyValueStore:
    """Dict-backed key-value store for tests that do not need SQLite."""

    def __init__(self):
        self.data: dict = {}

    def get(self, key: str):
        return self.data.get(key)

    def set(self, key: str, value) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self.data if k.startswith(prefix))


@pytest.fixture
def memory_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


# =============================================================================
# PROFILE FIXTURES
# =============================================================================


@pytest.fixture
def alice(profile_repo) -> Profile:
    return profile_repo.create(Profile(user_id="user-alice", username="alice"))


@pytest.fixture
def bob(profile_repo) -> Profile:
    return profile_repo.create(Profile(user_id="user-bob", username="bob"))


@pytest.fixture
def carol(profile_repo) -> Profile:
    return profile_repo.create(Profile(user_id="user-carol", username="carol"))


# =============================================================================
# PRICE PROVIDER FIXTURES
# =============================================================================


class ScriptedProvider:
    """
    Deterministic price provider for testing.

    Returns fixed prices for the symbols it knows and records every call.
    Set ``fail = True`` to make it behave like an unreachable upstream.
    """

    def __init__(
        self,
        name: str = "scripted",
        prices: Optional[dict[str, tuple[str, Optional[str]]]] = None,
        ttl_seconds: int = 3600,
    ):
        self.name = name
        self.ttl_seconds = ttl_seconds
        self.prices = prices if prices is not None else {
            "BTC": ("65000", "2.5"),
            "ETH": ("3500", "-1.25"),
            "SOL": ("150", None),
        }
        self.calls: list[list[str]] = []
        self.fail = False

    def fetch(self, symbols: list[str]) -> Optional[dict[str, PriceQuote]]:
        self.calls.append(list(symbols))
        if self.fail:
            return None
        quotes = {}
        for symbol in symbols:
            if symbol in self.prices:
                price, change = self.prices[symbol]
                quotes[symbol] = PriceQuote(
                    symbol=symbol,
                    price=Decimal(price),
                    source=self.name,
                    as_of=utc_datetime(2024, 6, 15, 14, 30),
                    change_24h_pct=Decimal(change) if change is not None else None,
                )
        return quotes


class FailingProvider:
    """Provider that never answers."""

    def __init__(self, name: str = "failing", ttl_seconds: int = 3600):
        self.name = name
        self.ttl_seconds = ttl_seconds
        self.calls: list[list[str]] = []

    def fetch(self, symbols: list[str]) -> Optional[dict[str, PriceQuote]]:
        self.calls.append(list(symbols))
        return None


class RaisingProvider:
    """Provider that breaks its contract by raising."""

    name = "raising"
    ttl_seconds = 3600

    def fetch(self, symbols: list[str]) -> Optional[dict[str, PriceQuote]]:
        raise ConnectionError("Network unavailable")


@pytest.fixture
def scripted_provider() -> ScriptedProvider:
    return ScriptedProvider()


def make_price_service(
    provider,
    storage,
    clock: Callable[[], float],
    min_interval_seconds: float = 60,
    max_calls_per_window: int = 30,
    detailed_provider=None,
    max_tracked_symbols: int = 200,
) -> PriceCacheService:
    """Wire providers into a PriceCacheService with test limits."""
    simple = build_channel(
        ProviderChain("prices.simple", [provider]),
        storage,
        min_interval_seconds=min_interval_seconds,
        max_calls_per_window=max_calls_per_window,
        window_seconds=3600,
        clock=clock,
    )
    detailed = None
    if detailed_provider is not None:
        detailed = build_channel(
            ProviderChain("prices.detailed", [detailed_provider]),
            storage,
            min_interval_seconds=min_interval_seconds,
            max_calls_per_window=max_calls_per_window,
            window_seconds=3600,
            clock=clock,
        )
    return PriceCacheService(
        simple,
        detailed,
        last_known_ttl_seconds=24 * 3600,
        clock=clock,
        max_tracked_symbols=max_tracked_symbols,
    )


@pytest.fixture
def price_service(scripted_provider, memory_store, clock) -> PriceCacheService:
    """Provide PriceCacheService backed by the scripted provider."""
    return make_price_service(scripted_provider, memory_store, clock)


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def journal_service(entry_repo) -> JournalService:
    return JournalService(entry_repo=entry_repo)


@pytest.fixture
def grant_service(grant_repo, profile_repo) -> AccessGrantService:
    return AccessGrantService(grant_repo=grant_repo, profile_repo=profile_repo)


@pytest.fixture
def visibility_service(kv_repo, grant_service) -> DataVisibilityService:
    return DataVisibilityService(storage=kv_repo, grant_service=grant_service)


@pytest.fixture
def shared_cache(clock) -> SharedEntryCache:
    return SharedEntryCache(ttl_seconds=300, clock=clock)


@pytest.fixture
def aggregator(entry_repo, grant_service, visibility_service, shared_cache) -> EntryAggregator:
    return EntryAggregator(
        entry_repo=entry_repo,
        grant_service=grant_service,
        visibility_service=visibility_service,
        shared_cache=shared_cache,
    )


@pytest.fixture
def metrics_engine(aggregator, price_service) -> PortfolioMetricsEngine:
    return PortfolioMetricsEngine(aggregator=aggregator, price_service=price_service)


# =============================================================================
# FACTORY FIXTURES
# =============================================================================


@pytest.fixture
def entry_factory(journal_service) -> Callable[..., Entry]:
    """Factory for persisting entries through the journal service."""

    def _create_entry(
        owner_id: str,
        entry_type: EntryType = EntryType.SPOT,
        asset: str = "BTC",
        side: Optional[TradeSide] = None,
        quantity: Optional[Decimal] = None,
        price_usd: Optional[Decimal] = None,
        pnl: Decimal = Decimal("0"),
        date: Optional[datetime] = None,
        is_personal: bool = False,
        **kwargs,
    ) -> Entry:
        return journal_service.create_entry(
            owner_id,
            EntryCreate(
                entry_type=entry_type,
                asset=asset,
                side=side,
                quantity=quantity,
                price_usd=price_usd,
                pnl=pnl,
                date=date,
                is_personal=is_personal,
                **kwargs,
            ),
        )

    return _create_entry


@pytest.fixture
def granted_access(grant_service) -> Callable[..., AccessGrant]:
    """Factory: viewer requests, sharer approves, returns the granted grant."""

    def _grant(
        viewer_id: str,
        sharer_id: str,
        shared_types: Optional[list[EntryType]] = None,
        **filters,
    ) -> AccessGrant:
        grant = grant_service.request_access(
            viewer_id,
            sharer_id,
            GrantFilters(shared_types=shared_types or [EntryType.SPOT], **filters),
        )
        return grant_service.approve(sharer_id, grant.id)

    return _grant


def make_entry(
    owner_id: str,
    entry_type: EntryType = EntryType.SPOT,
    asset: str = "BTC",
    side: Optional[TradeSide] = None,
    quantity: Optional[str] = None,
    price: Optional[str] = None,
    pnl: str = "0",
    date: Optional[datetime] = None,
    fees: str = "0",
    is_personal: bool = False,
) -> Entry:
    """In-memory entry for pure function tests."""
    return Entry(
        id=str(uuid.uuid4()),
        owner_id=owner_id,
        entry_type=entry_type,
        asset=asset,
        date=date or utc_datetime(2024, 6, 1),
        side=side,
        quantity=Decimal(quantity) if quantity is not None else None,
        price_usd=Decimal(price) if price is not None else None,
        pnl=Decimal(pnl),
        fees=Decimal(fees),
        is_personal=is_personal,
    )


# =============================================================================
# API TEST CLIENT FIXTURE
# =============================================================================


@pytest.fixture
def api_provider() -> ScriptedProvider:
    return ScriptedProvider(name="binance")


@pytest.fixture
def api_price_service(api_provider, session_factory, clock) -> PriceCacheService:
    return make_price_service(
        api_provider,
        SqlAlchemyKeyValueRepository(session_factory),
        clock,
    )


@pytest.fixture
def client(session_factory, api_price_service) -> TestClient:
    """Provide FastAPI test client with test database and scripted prices."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    shared_entry_cache = SharedEntryCache(ttl_seconds=300)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_kv_repo] = lambda: SqlAlchemyKeyValueRepository(session_factory)
    app.dependency_overrides[get_price_service] = lambda: api_price_service
    app.dependency_overrides[get_shared_entry_cache] = lambda: shared_entry_cache
    # Not entered as a context manager: the lifespan would open the real database
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def api_profiles(profile_repo) -> dict[str, Profile]:
    """alice, bob and carol registered for API tests."""
    return {
        name: profile_repo.create(Profile(user_id=f"user-{name}", username=name))
        for name in ("alice", "bob", "carol")
    }


def auth(user_id: str) -> dict[str, str]:
    """Request headers identifying the caller."""
    return {"X-User-Id": user_id}


# =============================================================================
# HELPER FUNCTIONS (exported for use in tests)
# =============================================================================


def assert_decimal_equal(
    actual: Decimal,
    expected: Decimal,
    tolerance: Decimal = Decimal("0.01"),
) -> None:
    """Assert two Decimals are equal within tolerance."""
    diff = abs(Decimal(str(actual)) - expected)
    assert diff <= tolerance, f"Expected {expected}, got {actual} (diff={diff})"


def days_ago(now: datetime, days: float) -> datetime:
    return now - timedelta(days=days)
