"""Upstream price providers module."""

from cryptovault.providers.base import PriceProvider, HttpPriceProvider
from cryptovault.providers.relay import CorsRelay, relays_from_templates
from cryptovault.providers.binance import BinanceTickerProvider
from cryptovault.providers.coingecko import (
    CoinGeckoSimplePriceProvider,
    CoinGeckoMarketsProvider,
    COINGECKO_IDS,
)
from cryptovault.providers.tokenmetrics import TokenMetricsProvider
from cryptovault.providers.chain import ProviderChain, ChainResult
from cryptovault.providers.live_stream import LiveTickerStream

__all__ = [
    "PriceProvider",
    "HttpPriceProvider",
    "CorsRelay",
    "relays_from_templates",
    "BinanceTickerProvider",
    "CoinGeckoSimplePriceProvider",
    "CoinGeckoMarketsProvider",
    "COINGECKO_IDS",
    "TokenMetricsProvider",
    "ProviderChain",
    "ChainResult",
    "LiveTickerStream",
]
