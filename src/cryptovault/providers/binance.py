"""Binance public 24h ticker provider."""

import logging
from typing import Optional

from cryptovault.core.timezone import now_utc
from cryptovault.domain.models import PriceQuote
from cryptovault.providers.base import HttpPriceProvider, to_decimal

logger = logging.getLogger(__name__)

QUOTE_ASSET = "USDT"


class BinanceTickerProvider(HttpPriceProvider):
    """
    Prices from ``GET /api/v3/ticker/24hr``.

    Requests the full ticker list once and picks the ``<SYMBOL>USDT``
    pairs, so an unlisted symbol does not fail the whole batch.
    """

    name = "binance"

    def fetch(self, symbols: list[str]) -> Optional[dict[str, PriceQuote]]:
        payload = self._get_json("/api/v3/ticker/24hr")
        if not isinstance(payload, list):
            if payload is not None:
                logger.warning("binance: unexpected ticker payload type %s", type(payload).__name__)
            return None

        wanted = {f"{symbol}{QUOTE_ASSET}": symbol for symbol in symbols}
        as_of = now_utc()
        quotes: dict[str, PriceQuote] = {}
        for row in payload:
            if not isinstance(row, dict):
                continue
            symbol = wanted.get(row.get("symbol", ""))
            if symbol is None:
                continue
            price = to_decimal(row.get("lastPrice"))
            if price is None or price <= 0:
                continue
            quotes[symbol] = PriceQuote(
                symbol=symbol,
                price=price,
                source=self.name,
                as_of=as_of,
                change_24h_pct=to_decimal(row.get("priceChangePercent")),
            )
        return quotes
