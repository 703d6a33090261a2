"""Enumerations for domain models."""

from enum import Enum


class EntryType(str, Enum):
    """Kinds of journal entries."""

    SPOT = "spot"
    FUTURES = "futures"
    WALLET = "wallet"
    DUAL_INVESTMENT = "dual_investment"
    LIQUIDITY_MINING = "liquidity_mining"
    LIQUIDITY_POOL = "liquidity_pool"
    OTHER = "other"


class TradeSide(str, Enum):
    """Direction of a spot or futures trade."""

    BUY = "buy"
    SELL = "sell"


class GrantStatus(str, Enum):
    """Lifecycle of an access grant."""

    PENDING = "pending"
    GRANTED = "granted"
    DENIED = "denied"
    REVOKED = "revoked"


class Currency(str, Enum):
    """Quote currency of an entry."""

    USD = "USD"
    # Other currencies deferred


# Entry types that carry a buy/sell side
TRADE_TYPES = frozenset({EntryType.SPOT, EntryType.FUTURES})
