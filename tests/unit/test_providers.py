"""
Unit tests for upstream price providers.

Tests cover:
- Binance 24h ticker parsing
- CoinGecko simple price and markets parsing
- TokenMetrics key requirement and batching
- CORS relay wrapping and unwrapping
- Network and payload failures yielding None
"""

import json
from decimal import Decimal

import httpx
import pytest

from cryptovault.providers import (
    BinanceTickerProvider,
    CoinGeckoMarketsProvider,
    CoinGeckoSimplePriceProvider,
    CorsRelay,
    TokenMetricsProvider,
)
from cryptovault.providers.base import to_decimal
from cryptovault.providers.coingecko import coingecko_id

from tests.conftest import utc_datetime


def mock_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


BINANCE_TICKERS = [
    {"symbol": "BTCUSDT", "lastPrice": "65000.50", "priceChangePercent": "2.150"},
    {"symbol": "ETHUSDT", "lastPrice": "3500.00", "priceChangePercent": "-1.000"},
    {"symbol": "ETHBTC", "lastPrice": "0.0538", "priceChangePercent": "0.1"},
    {"symbol": "DEADUSDT", "lastPrice": "0", "priceChangePercent": "0"},
]


# =============================================================================
# BINANCE TESTS
# =============================================================================


class TestBinanceTickerProvider:
    """Tests for the Binance ticker provider."""

    def test_fetch_picks_usdt_pairs(self):
        """
        GIVEN Binance returns the full 24h ticker list
        WHEN I fetch BTC, ETH and an unlisted symbol
        THEN BTC and ETH are priced from their USDT pairs
        AND the unlisted symbol is omitted
        """
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(request.url.path)
            return httpx.Response(200, json=BINANCE_TICKERS)

        provider = BinanceTickerProvider("https://api.binance.com", 3600, client=mock_client(handler))

        quotes = provider.fetch(["BTC", "ETH", "NOPE"])

        assert requested == ["/api/v3/ticker/24hr"]
        assert set(quotes) == {"BTC", "ETH"}
        assert quotes["BTC"].price == Decimal("65000.50")
        assert quotes["BTC"].change_24h_pct == Decimal("2.150")
        assert quotes["BTC"].source == "binance"

    def test_zero_price_skipped(self):
        provider = BinanceTickerProvider(
            "https://api.binance.com",
            3600,
            client=mock_client(lambda r: httpx.Response(200, json=BINANCE_TICKERS)),
        )

        assert provider.fetch(["DEAD"]) == {}

    def test_http_error_returns_none(self):
        provider = BinanceTickerProvider(
            "https://api.binance.com",
            3600,
            client=mock_client(lambda r: httpx.Response(451, json={"msg": "restricted"})),
        )

        assert provider.fetch(["BTC"]) is None

    def test_timeout_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        provider = BinanceTickerProvider("https://api.binance.com", 3600, client=mock_client(handler))

        assert provider.fetch(["BTC"]) is None

    def test_connection_error_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        provider = BinanceTickerProvider("https://api.binance.com", 3600, client=mock_client(handler))

        assert provider.fetch(["BTC"]) is None

    def test_non_json_body_returns_none(self):
        provider = BinanceTickerProvider(
            "https://api.binance.com",
            3600,
            client=mock_client(lambda r: httpx.Response(200, text="<html>maintenance</html>")),
        )

        assert provider.fetch(["BTC"]) is None

    def test_unexpected_shape_returns_none(self):
        provider = BinanceTickerProvider(
            "https://api.binance.com",
            3600,
            client=mock_client(lambda r: httpx.Response(200, json={"code": -1121})),
        )

        assert provider.fetch(["BTC"]) is None


# =============================================================================
# COINGECKO TESTS
# =============================================================================


class TestCoinGeckoSimplePriceProvider:
    """Tests for /simple/price parsing."""

    def test_fetch_maps_ids_back_to_symbols(self):
        """
        GIVEN CoinGecko answers keyed by coin id
        WHEN I fetch BTC and SOL
        THEN the request uses coin ids and quotes come back keyed by symbol
        """
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["ids"] = request.url.params["ids"]
            return httpx.Response(
                200,
                json={
                    "bitcoin": {"usd": 65000, "usd_24h_change": 1.5},
                    "solana": {"usd": 150.25, "usd_24h_change": -3.2},
                },
            )

        provider = CoinGeckoSimplePriceProvider(
            "https://api.coingecko.com/api/v3", 3600, client=mock_client(handler)
        )

        quotes = provider.fetch(["BTC", "SOL"])

        assert seen["path"] == "/api/v3/simple/price"
        assert seen["ids"] == "bitcoin,solana"
        assert quotes["BTC"].price == Decimal("65000")
        assert quotes["SOL"].change_24h_pct == Decimal("-3.2")
        assert quotes["SOL"].source == "coingecko"

    def test_empty_symbol_list_skips_request(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        provider = CoinGeckoSimplePriceProvider(
            "https://api.coingecko.com/api/v3", 3600, client=mock_client(handler)
        )

        assert provider.fetch([]) == {}

    def test_unknown_symbol_guesses_lowercase_id(self):
        assert coingecko_id("PEPE") == "pepe"
        assert coingecko_id("AVAX") == "avalanche-2"

    def test_rate_limited_upstream_returns_none(self):
        provider = CoinGeckoSimplePriceProvider(
            "https://api.coingecko.com/api/v3",
            3600,
            client=mock_client(lambda r: httpx.Response(429)),
        )

        assert provider.fetch(["BTC"]) is None


class TestCoinGeckoMarketsProvider:
    """Tests for /coins/markets parsing."""

    def test_fetch_includes_name_and_market_cap(self):
        payload = [
            {
                "id": "ethereum",
                "name": "Ethereum",
                "current_price": 3500.5,
                "market_cap": 420000000000,
                "price_change_percentage_24h": -0.75,
            }
        ]
        provider = CoinGeckoMarketsProvider(
            "https://api.coingecko.com/api/v3",
            3600,
            client=mock_client(lambda r: httpx.Response(200, json=payload)),
        )

        quotes = provider.fetch(["ETH"])

        assert quotes["ETH"].name == "Ethereum"
        assert quotes["ETH"].market_cap == Decimal("420000000000")
        assert quotes["ETH"].change_24h_pct == Decimal("-0.75")
        assert quotes["ETH"].source == "coingecko_markets"

    def test_as_of_taken_from_last_updated(self):
        payload = [
            {"id": "bitcoin", "current_price": 65000, "last_updated": "2024-06-15T14:30:00.000Z"},
            {"id": "ethereum", "current_price": 3500, "last_updated": "not a date"},
        ]
        provider = CoinGeckoMarketsProvider(
            "https://api.coingecko.com/api/v3",
            3600,
            client=mock_client(lambda r: httpx.Response(200, json=payload)),
        )

        quotes = provider.fetch(["BTC", "ETH"])

        assert quotes["BTC"].as_of == utc_datetime(2024, 6, 15, 14, 30)
        assert quotes["ETH"].as_of.tzinfo is not None


# =============================================================================
# TOKENMETRICS TESTS
# =============================================================================


class TestTokenMetricsProvider:
    """Tests for the key-gated TokenMetrics provider."""

    def test_without_api_key_returns_none_without_request(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        provider = TokenMetricsProvider(
            "https://api.tokenmetrics.com", 3600, api_key=None, client=mock_client(handler)
        )

        assert provider.fetch(["BTC"]) is None

    def test_sends_key_and_parses_rows(self):
        """
        GIVEN an API key
        WHEN I fetch BTC
        THEN the key is sent as x-api-key and the first usable price field is used
        """
        headers = {}

        def handler(request: httpx.Request) -> httpx.Response:
            headers["x-api-key"] = request.headers.get("x-api-key")
            return httpx.Response(
                200,
                json={
                    "data": [
                        {"token_symbol": "btc", "token_name": "Bitcoin", "price": "64000.1"},
                        {"token_symbol": "ZZZ", "current_price": 5},
                    ]
                },
            )

        provider = TokenMetricsProvider(
            "https://api.tokenmetrics.com", 3600, api_key="secret", client=mock_client(handler)
        )

        quotes = provider.fetch(["BTC"])

        assert headers["x-api-key"] == "secret"
        assert set(quotes) == {"BTC"}
        assert quotes["BTC"].price == Decimal("64000.1")
        assert quotes["BTC"].name == "Bitcoin"

    def test_requests_are_batched(self):
        batches = []

        def handler(request: httpx.Request) -> httpx.Response:
            batches.append(request.url.params["symbol"].split(","))
            return httpx.Response(200, json={"data": []})

        provider = TokenMetricsProvider(
            "https://api.tokenmetrics.com", 3600, api_key="secret", client=mock_client(handler)
        )
        symbols = [f"T{i}" for i in range(30)]

        quotes = provider.fetch(symbols)

        assert [len(b) for b in batches] == [25, 5]
        assert quotes == {}

    def test_all_batches_failing_returns_none(self):
        provider = TokenMetricsProvider(
            "https://api.tokenmetrics.com",
            3600,
            api_key="secret",
            client=mock_client(lambda r: httpx.Response(500)),
        )

        assert provider.fetch(["BTC"]) is None


# =============================================================================
# RELAY TESTS
# =============================================================================


class TestCorsRelay:
    """Tests for relay URL building and envelope handling."""

    def test_allorigins_template_uses_contents_envelope(self):
        relay = CorsRelay.from_template("https://api.allorigins.win/get?url={encoded_url}")

        assert relay.envelope == "contents"
        assert relay.wrap("https://x.test/a?b=1") == (
            "https://api.allorigins.win/get?url=https%3A%2F%2Fx.test%2Fa%3Fb%3D1"
        )

    def test_passthrough_relay(self):
        relay = CorsRelay.from_template("https://cors.example.org/{url}")

        assert relay.envelope is None
        assert relay.wrap("https://x.test/a") == "https://cors.example.org/https://x.test/a"
        assert relay.unwrap({"a": 1}) == {"a": 1}

    def test_unwrap_string_contents(self):
        relay = CorsRelay("t", envelope="contents")

        assert relay.unwrap({"contents": json.dumps({"bitcoin": {"usd": 1}})}) == {"bitcoin": {"usd": 1}}
        assert relay.unwrap({"contents": "not json"}) is None
        assert relay.unwrap(["unexpected"]) is None

    def test_provider_falls_through_relays(self):
        """
        GIVEN a first relay that fails and a second allorigins relay that works
        WHEN CoinGecko is fetched through relays
        THEN the quote is parsed from the second relay's envelope
        """
        body = json.dumps({"bitcoin": {"usd": 65000, "usd_24h_change": 0.5}})

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "broken.example.org":
                return httpx.Response(502)
            return httpx.Response(200, json={"contents": body})

        provider = CoinGeckoSimplePriceProvider(
            "https://api.coingecko.com/api/v3",
            3600,
            relays=[
                CorsRelay.from_template("https://broken.example.org/{url}"),
                CorsRelay.from_template("https://api.allorigins.win/get?url={encoded_url}"),
            ],
            client=mock_client(handler),
        )

        quotes = provider.fetch(["BTC"])

        assert quotes["BTC"].price == Decimal("65000")


class TestToDecimal:
    """Tests for upstream number parsing."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("1.5", Decimal("1.5")),
            (2, Decimal("2")),
            (None, None),
            ("abc", None),
            ("NaN", None),
            (True, None),
        ],
    )
    def test_to_decimal(self, raw, expected):
        assert to_decimal(raw) == expected
