"""Domain layer - pure business models with no external dependencies."""

from cryptovault.domain.models import (
    Entry,
    AccessGrant,
    GrantFilters,
    Profile,
    ProfileSummary,
    PriceQuote,
    EntryType,
    TradeSide,
    GrantStatus,
    Currency,
)

__all__ = [
    "Entry",
    "AccessGrant",
    "GrantFilters",
    "Profile",
    "ProfileSummary",
    "PriceQuote",
    "EntryType",
    "TradeSide",
    "GrantStatus",
    "Currency",
]
