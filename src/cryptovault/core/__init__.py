"""Core utilities and shared functionality."""

from cryptovault.core.timezone import (
    now_utc,
    to_utc,
    parse_datetime_utc,
    from_timestamp,
    to_naive_utc,
    from_naive_utc,
    UTC,
)
from cryptovault.core.symbols import (
    normalize_symbol,
    normalize_symbols,
    is_stablecoin,
    STABLECOINS,
)
from cryptovault.core.exceptions import (
    AppError,
    ValidationError,
    NotFoundError,
    PermissionDeniedError,
    StoreError,
    GrantRequestFailure,
    GrantRequestError,
    RateLimitedError,
    translate_store_errors,
)

__all__ = [
    "now_utc",
    "to_utc",
    "parse_datetime_utc",
    "from_timestamp",
    "to_naive_utc",
    "from_naive_utc",
    "UTC",
    "normalize_symbol",
    "normalize_symbols",
    "is_stablecoin",
    "STABLECOINS",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "PermissionDeniedError",
    "StoreError",
    "GrantRequestFailure",
    "GrantRequestError",
    "RateLimitedError",
    "translate_store_errors",
]
