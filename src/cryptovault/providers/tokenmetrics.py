"""TokenMetrics token price provider."""

import logging
from typing import Optional

import httpx

from cryptovault.core.timezone import now_utc
from cryptovault.domain.models import PriceQuote
from cryptovault.providers.base import HttpPriceProvider, to_decimal

logger = logging.getLogger(__name__)

MAX_SYMBOLS_PER_REQUEST = 25


class TokenMetricsProvider(HttpPriceProvider):
    """
    Prices from ``/v3/tokens?symbol=...``.

    Requires an API key; without one the provider is skipped.
    """

    name = "tokenmetrics"

    def __init__(
        self,
        base_url: str,
        ttl_seconds: int,
        api_key: Optional[str] = None,
        timeout_seconds: float = 8.0,
        client: Optional[httpx.Client] = None,
    ):
        super().__init__(base_url, ttl_seconds, timeout_seconds=timeout_seconds, client=client)
        self._api_key = api_key

    def fetch(self, symbols: list[str]) -> Optional[dict[str, PriceQuote]]:
        if not self._api_key:
            logger.debug("tokenmetrics: no API key configured, skipping")
            return None

        quotes: dict[str, PriceQuote] = {}
        any_response = False
        for start in range(0, len(symbols), MAX_SYMBOLS_PER_REQUEST):
            batch = symbols[start:start + MAX_SYMBOLS_PER_REQUEST]
            payload = self._get_json(
                "/v3/tokens",
                params={
                    "symbol": ",".join(s.lower() for s in batch),
                    "limit": MAX_SYMBOLS_PER_REQUEST,
                    "page": 1,
                },
                headers={"x-api-key": self._api_key, "accept": "application/json"},
            )
            if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
                continue
            any_response = True
            quotes.update(self._parse(payload["data"], set(batch)))

        return quotes if any_response else None

    def _parse(self, rows: list, wanted: set[str]) -> dict[str, PriceQuote]:
        as_of = now_utc()
        quotes: dict[str, PriceQuote] = {}
        for row in rows:
            if not isinstance(row, dict):
                continue
            symbol = str(row.get("token_symbol") or "").upper()
            if symbol not in wanted or symbol in quotes:
                continue
            price = None
            for field_name in ("current_price", "price", "price_usd"):
                price = to_decimal(row.get(field_name))
                if price is not None:
                    break
            if price is None or price <= 0:
                continue
            quotes[symbol] = PriceQuote(
                symbol=symbol,
                price=price,
                source=self.name,
                as_of=as_of,
                change_24h_pct=to_decimal(row.get("price_change_percentage_24h")),
                name=row.get("token_name"),
                market_cap=to_decimal(row.get("market_cap")),
            )
        return quotes
