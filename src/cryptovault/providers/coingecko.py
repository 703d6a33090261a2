"""CoinGecko simple-price and markets providers."""

import logging
from typing import Optional

from cryptovault.core.timezone import now_utc, parse_datetime_utc
from cryptovault.domain.models import PriceQuote
from cryptovault.providers.base import HttpPriceProvider, to_decimal

logger = logging.getLogger(__name__)

# Ticker symbol -> CoinGecko coin id
COINGECKO_IDS: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "BNB": "binancecoin",
    "ADA": "cardano",
    "SOL": "solana",
    "XRP": "ripple",
    "DOT": "polkadot",
    "DOGE": "dogecoin",
    "AVAX": "avalanche-2",
    "SHIB": "shiba-inu",
    "MATIC": "matic-network",
    "LTC": "litecoin",
    "UNI": "uniswap",
    "ATOM": "cosmos",
    "LINK": "chainlink",
    "BCH": "bitcoin-cash",
    "XLM": "stellar",
    "VET": "vechain",
    "FIL": "filecoin",
    "TRX": "tron",
    "ETC": "ethereum-classic",
    "ALGO": "algorand",
    "AAVE": "aave",
    "MANA": "decentraland",
    "SAND": "the-sandbox",
    "CRV": "curve-dao-token",
    "SUSHI": "sushi",
    "COMP": "compound-governance-token",
    "YFI": "yearn-finance",
    "SNX": "havven",
    "MKR": "maker",
    "ENJ": "enjincoin",
    "BAT": "basic-attention-token",
    "ZRX": "0x",
    "USDT": "tether",
    "USDC": "usd-coin",
    "BUSD": "binance-usd",
    "DAI": "dai",
    "ARB": "arbitrum",
    "OP": "optimism",
    "TIA": "celestia",
    "SUI": "sui",
    "APT": "aptos",
    "SEI": "sei-network",
    "WLD": "worldcoin-wld",
    "DYDX": "dydx",
    "HBAR": "hedera-hashgraph",
    "OM": "mantra",
}


def coingecko_id(symbol: str) -> str:
    """Map a symbol to its CoinGecko id, guessing the lower-cased symbol."""
    return COINGECKO_IDS.get(symbol, symbol.lower())


def _row_time(row: dict, default):
    value = row.get("last_updated")
    if not isinstance(value, str) or not value:
        return default
    try:
        return parse_datetime_utc(value)
    except (ValueError, OverflowError):
        return default


class CoinGeckoSimplePriceProvider(HttpPriceProvider):
    """Prices from ``/simple/price`` with 24h change."""

    name = "coingecko"

    def fetch(self, symbols: list[str]) -> Optional[dict[str, PriceQuote]]:
        if not symbols:
            return {}
        ids = {coingecko_id(symbol): symbol for symbol in symbols}
        payload = self._get_json(
            "/simple/price",
            params={
                "ids": ",".join(ids),
                "vs_currencies": "usd",
                "include_24hr_change": "true",
            },
        )
        if not isinstance(payload, dict):
            return None

        as_of = now_utc()
        quotes: dict[str, PriceQuote] = {}
        for coin_id, data in payload.items():
            symbol = ids.get(coin_id)
            if symbol is None or not isinstance(data, dict):
                continue
            price = to_decimal(data.get("usd"))
            if price is None or price <= 0:
                continue
            quotes[symbol] = PriceQuote(
                symbol=symbol,
                price=price,
                source=self.name,
                as_of=as_of,
                change_24h_pct=to_decimal(data.get("usd_24h_change")),
            )
        return quotes


class CoinGeckoMarketsProvider(HttpPriceProvider):
    """Detailed market data (name, market cap, 24h change) from ``/coins/markets``."""

    name = "coingecko_markets"

    def fetch(self, symbols: list[str]) -> Optional[dict[str, PriceQuote]]:
        if not symbols:
            return {}
        ids = {coingecko_id(symbol): symbol for symbol in symbols}
        payload = self._get_json(
            "/coins/markets",
            params={
                "vs_currency": "usd",
                "ids": ",".join(ids),
                "price_change_percentage": "24h",
            },
        )
        if not isinstance(payload, list):
            return None

        as_of = now_utc()
        quotes: dict[str, PriceQuote] = {}
        for row in payload:
            if not isinstance(row, dict):
                continue
            symbol = ids.get(row.get("id", ""))
            price = to_decimal(row.get("current_price"))
            if symbol is None or price is None or price <= 0:
                continue
            quotes[symbol] = PriceQuote(
                symbol=symbol,
                price=price,
                source=self.name,
                as_of=_row_time(row, as_of),
                change_24h_pct=to_decimal(row.get("price_change_percentage_24h")),
                name=row.get("name"),
                market_cap=to_decimal(row.get("market_cap")),
            )
        return quotes
