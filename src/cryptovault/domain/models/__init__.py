"""Domain models package."""

from cryptovault.domain.models.enums import (
    EntryType,
    TradeSide,
    GrantStatus,
    Currency,
    TRADE_TYPES,
)
from cryptovault.domain.models.entry import Entry
from cryptovault.domain.models.profile import Profile, ProfileSummary
from cryptovault.domain.models.grant import AccessGrant, GrantFilters
from cryptovault.domain.models.quote import PriceQuote

__all__ = [
    "EntryType",
    "TradeSide",
    "GrantStatus",
    "Currency",
    "TRADE_TYPES",
    "Entry",
    "Profile",
    "ProfileSummary",
    "AccessGrant",
    "GrantFilters",
    "PriceQuote",
]
