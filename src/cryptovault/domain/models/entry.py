"""Journal entry domain model."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from cryptovault.domain.models.enums import EntryType, TradeSide, Currency, TRADE_TYPES


@dataclass
class Entry:
    """
    A single logged piece of trading activity.

    - spot/futures entries may carry a side; futures may carry leverage
    - quantity and price are optional but positive when present
    - pnl is realized profit/loss in USD, any sign
    - personal entries are never shown to other users
    """

    id: str
    owner_id: str
    entry_type: EntryType
    asset: str
    date: datetime
    symbol: Optional[str] = None
    quantity: Optional[Decimal] = None
    price_usd: Optional[Decimal] = None
    fees: Decimal = field(default_factory=lambda: Decimal("0"))
    pnl: Decimal = field(default_factory=lambda: Decimal("0"))
    side: Optional[TradeSide] = None
    leverage: Optional[int] = None
    currency: Currency = Currency.USD
    is_personal: bool = False
    notes: Optional[str] = None
    platform: Optional[str] = None
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.entry_type, str):
            self.entry_type = EntryType(self.entry_type)
        if isinstance(self.side, str):
            self.side = TradeSide(self.side)
        if isinstance(self.currency, str):
            self.currency = Currency(self.currency)

    @property
    def is_trade(self) -> bool:
        """Return True for spot and futures entries."""
        return self.entry_type in TRADE_TYPES

    @property
    def display_symbol(self) -> str:
        """Symbol shown to users, falling back to the asset identifier."""
        return self.symbol or self.asset

    @property
    def notional(self) -> Optional[Decimal]:
        """quantity * price when both are known."""
        if self.quantity is None or self.price_usd is None:
            return None
        return self.quantity * self.price_usd
