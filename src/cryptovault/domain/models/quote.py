"""Price quote domain model."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from cryptovault.core.timezone import from_timestamp


@dataclass
class PriceQuote:
    """
    Latest known price for a symbol.

    Prices are quoted in USD (USDT pairs are treated as USD).
    name/market_cap are only filled by detailed market data providers.
    """

    symbol: str
    price: Decimal
    source: str
    as_of: datetime
    change_24h_pct: Optional[Decimal] = None
    name: Optional[str] = None
    market_cap: Optional[Decimal] = None

    def to_cache(self) -> dict[str, Any]:
        """JSON-safe representation used by the price cache."""
        return {
            "symbol": self.symbol,
            "price": str(self.price),
            "source": self.source,
            "as_of": self.as_of.timestamp(),
            "change_24h_pct": None if self.change_24h_pct is None else str(self.change_24h_pct),
            "name": self.name,
            "market_cap": None if self.market_cap is None else str(self.market_cap),
        }

    @classmethod
    def from_cache(cls, data: dict[str, Any]) -> "PriceQuote":
        change = data.get("change_24h_pct")
        market_cap = data.get("market_cap")
        return cls(
            symbol=data["symbol"],
            price=Decimal(data["price"]),
            source=data.get("source", "cache"),
            as_of=from_timestamp(float(data["as_of"])),
            change_24h_pct=None if change is None else Decimal(change),
            name=data.get("name"),
            market_cap=None if market_cap is None else Decimal(market_cap),
        )
