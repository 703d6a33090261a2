"""FastAPI application entry point."""

import logging
import math
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cryptovault.api.deps import get_price_service, get_kv_repo, reset_singletons
from cryptovault.api.routers import (
    entries_router,
    grants_router,
    sources_router,
    prices_router,
    portfolio_router,
)
from cryptovault.config.logging_config import setup_logging
from cryptovault.config.settings import get_settings
from cryptovault.core.exceptions import (
    AppError,
    GrantRequestError,
    GrantRequestFailure,
    RateLimitedError,
)
from cryptovault.providers import LiveTickerStream
from cryptovault.repositories.sqlalchemy.database import init_db
from cryptovault.services import PriceRefresher, RateLimiter

logger = logging.getLogger(__name__)

_STATUS_BY_CODE = {
    "VALIDATION_ERROR": 400,
    "NOT_FOUND": 404,
    "PERMISSION_DENIED": 403,
    "RATE_LIMITED": 429,
    "STORE_ERROR": 502,
}

_STATUS_BY_GRANT_FAILURE = {
    GrantRequestFailure.INVALID_INPUT: 400,
    GrantRequestFailure.SELF_TARGET: 400,
    GrantRequestFailure.UNKNOWN_USER: 404,
    GrantRequestFailure.DUPLICATE: 409,
    GrantRequestFailure.PERSISTENCE: 502,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    setup_logging()
    init_db()
    settings = get_settings()
    price_service = get_price_service()
    refresher = PriceRefresher(
        price_service,
        symbol_source=lambda: price_service.tracked_symbols,
        limiter=RateLimiter(
            "refresh.passive",
            get_kv_repo(),
            min_interval_seconds=settings.passive_min_interval_seconds,
            max_calls_per_window=settings.max_calls_per_window,
            window_seconds=settings.rate_window_seconds,
        ),
        interval_seconds=settings.price_refresh_interval_seconds,
    )
    refresher.start()
    stream = None
    unsubscribe = None
    if settings.live_stream_enabled:
        stream = LiveTickerStream(settings.binance_stream_url, price_service.ingest_quote)
        stream.start(price_service.tracked_symbols or ["BTC", "ETH"])
        # Follow newly priced symbols
        unsubscribe = price_service.subscribe(
            lambda quotes: stream.update_symbols(price_service.tracked_symbols)
        )
    yield
    # Shutdown
    if unsubscribe is not None:
        unsubscribe()
    if stream is not None:
        stream.stop()
    refresher.stop()
    reset_singletons()


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Crypto trading journal with shared entries, cached prices and portfolio analytics",
    version=settings.app_version,
    lifespan=lifespan,
)

# Include routers
app.include_router(entries_router)
app.include_router(grants_router)
app.include_router(sources_router)
app.include_router(prices_router)
app.include_router(portfolio_router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Global handler for application errors."""
    content = {"error": exc.code, "message": exc.message}
    headers = None
    if isinstance(exc, GrantRequestError):
        status_code = _STATUS_BY_GRANT_FAILURE.get(exc.reason, 400)
        content["reason"] = exc.reason.value
    else:
        status_code = _STATUS_BY_CODE.get(exc.code, 400)
    if isinstance(exc, RateLimitedError):
        content["retry_after_seconds"] = exc.retry_after_seconds
        headers = {"Retry-After": str(max(1, math.ceil(exc.retry_after_seconds)))}
    return JSONResponse(status_code=status_code, content=content, headers=headers)


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
