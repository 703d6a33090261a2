"""Rate-limited, cached price lookups over provider fallback chains."""

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Callable, Optional

import httpx

from cryptovault.config.settings import Settings
from cryptovault.core.exceptions import RateLimitedError
from cryptovault.core.symbols import is_stablecoin, normalize_symbol, normalize_symbols
from cryptovault.core.timezone import from_timestamp
from cryptovault.domain.models import PriceQuote
from cryptovault.providers import (
    BinanceTickerProvider,
    CoinGeckoMarketsProvider,
    CoinGeckoSimplePriceProvider,
    ProviderChain,
    TokenMetricsProvider,
    relays_from_templates,
)
from cryptovault.repositories.protocols import KeyValueRepository
from cryptovault.services.price_cache_store import PriceCacheStore
from cryptovault.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

QuotesListener = Callable[[dict[str, PriceQuote]], None]

LAST_KNOWN_SUFFIX = ".last_known"

MAX_TRACKED_SYMBOLS = 200


@dataclass
class PriceChannel:
    """
    One provider chain with its own limiter and cache namespaces.

    ``fresh`` holds quotes for the provider's TTL; ``last_known`` keeps
    them much longer as the stale fallback when the chain is throttled
    or down.
    """

    chain: ProviderChain
    limiter: RateLimiter
    fresh: PriceCacheStore
    last_known: PriceCacheStore
    default_ttl_seconds: int = 3600
    lock: threading.Lock = field(default_factory=threading.Lock)
    in_flight: bool = False

    @property
    def name(self) -> str:
        return self.chain.name


def build_channel(
    chain: ProviderChain,
    storage: KeyValueRepository,
    min_interval_seconds: float,
    max_calls_per_window: int,
    window_seconds: float,
    default_ttl_seconds: int = 3600,
    clock: Callable[[], float] = time.time,
) -> PriceChannel:
    """Wire a chain to a limiter and cache namespaces named after it."""
    return PriceChannel(
        chain=chain,
        limiter=RateLimiter(
            chain.name,
            storage,
            min_interval_seconds=min_interval_seconds,
            max_calls_per_window=max_calls_per_window,
            window_seconds=window_seconds,
            clock=clock,
        ),
        fresh=PriceCacheStore(storage, chain.name, clock=clock),
        last_known=PriceCacheStore(storage, chain.name + LAST_KNOWN_SUFFIX, clock=clock),
        default_ttl_seconds=default_ttl_seconds,
    )


class PriceCacheService:
    """
    Serves prices from cache, refilling through the provider chain only
    when the rate limiter allows.

    Never blocks on a throttled or busy chain: callers get whatever the
    cache holds (possibly stale or partial) instead. Stablecoins are
    answered locally without touching cache, limiter or network.
    """

    def __init__(
        self,
        simple: PriceChannel,
        detailed: Optional[PriceChannel] = None,
        last_known_ttl_seconds: int = 24 * 60 * 60,
        clock: Callable[[], float] = time.time,
        max_tracked_symbols: int = MAX_TRACKED_SYMBOLS,
        http_client: Optional[httpx.Client] = None,
    ):
        self._simple = simple
        self._detailed = detailed or simple
        self._last_known_ttl = last_known_ttl_seconds
        self._clock = clock
        self._listeners: list[QuotesListener] = []
        self._listeners_lock = threading.Lock()
        self._max_tracked = max_tracked_symbols
        self._tracked: OrderedDict[str, None] = OrderedDict()
        self._tracked_lock = threading.Lock()
        self._http_client = http_client

    @property
    def channels(self) -> list[PriceChannel]:
        if self._detailed is self._simple:
            return [self._simple]
        return [self._simple, self._detailed]

    @property
    def tracked_symbols(self) -> list[str]:
        """Recently priced symbols, oldest first, for background refresh."""
        with self._tracked_lock:
            return list(self._tracked)

    def get_quotes(self, symbols: list[str]) -> dict[str, PriceQuote]:
        """
        Quotes for symbols from the simple-price chain.

        Fresh cache hits short-circuit; otherwise one chain call is made if
        permitted. Symbols nobody can price are omitted.
        """
        return self._resolve(self._simple, symbols, force=False)

    def get_prices(self, symbols: list[str]) -> dict[str, Decimal]:
        """Same as get_quotes but price only."""
        return {symbol: quote.price for symbol, quote in self.get_quotes(symbols).items()}

    def reload(self, symbols: list[str]) -> dict[str, PriceQuote]:
        """
        Force a chain call, ignoring fresh cache.

        Raises RateLimitedError with the exact wait when the limiter denies it.
        """
        return self._resolve(self._simple, symbols, force=True)

    def get_market_data(self, symbols: list[str], force: bool = False) -> dict[str, PriceQuote]:
        """Detailed quotes (name, market cap) from the detailed chain."""
        return self._resolve(self._detailed, symbols, force=force)

    def get_price(self, symbol: str) -> Optional[Decimal]:
        """Cached price only; never calls upstream."""
        quote = self.get_cached_quote(symbol)
        return quote.price if quote else None

    def get_change_pct(self, symbol: str) -> Optional[Decimal]:
        """Cached 24h change only; never calls upstream."""
        quote = self.get_cached_quote(symbol)
        return quote.change_24h_pct if quote else None

    def get_cached_quote(self, symbol: str) -> Optional[PriceQuote]:
        symbol = normalize_symbol(symbol)
        if not symbol:
            return None
        if is_stablecoin(symbol):
            return self._stable_quote(symbol)
        return self._cached(self._simple, symbol)

    def ingest_quote(self, quote: PriceQuote) -> None:
        """Write a pushed quote (live stream) into the simple cache."""
        symbol = normalize_symbol(quote.symbol)
        if not symbol or is_stablecoin(symbol):
            return
        quote = replace(quote, symbol=symbol)
        self._store(self._simple, {symbol: quote}, self._simple.default_ttl_seconds)
        self._notify({symbol: quote})

    def subscribe(self, listener: QuotesListener) -> Callable[[], None]:
        """Register a listener for updated quotes. Returns an unsubscribe function."""
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def can_reload(self) -> bool:
        """Whether a reload would pass the simple channel's limiter right now."""
        return self._simple.limiter.can_call()

    def close(self) -> None:
        """Close the HTTP client this service owns, if any."""
        if self._http_client is not None:
            self._http_client.close()

    def rate_limit_status(self) -> dict[str, dict]:
        return {
            channel.name: {
                "can_call": channel.limiter.can_call(),
                "seconds_until_next_call": channel.limiter.time_until_next_call(),
                "call_count": channel.limiter.call_count,
                "max_calls_per_window": channel.limiter.max_calls_per_window,
                "in_flight": channel.in_flight,
            }
            for channel in self.channels
        }

    def _resolve(self, channel: PriceChannel, symbols: list[str], force: bool) -> dict[str, PriceQuote]:
        result: dict[str, PriceQuote] = {}
        pending: list[str] = []
        for symbol in normalize_symbols(symbols):
            if is_stablecoin(symbol):
                result[symbol] = self._stable_quote(symbol)
            else:
                pending.append(symbol)

        if not pending:
            return result

        if not force:
            hits = {}
            for symbol in pending:
                cached = channel.fresh.get(symbol)
                if cached is not None:
                    hits[symbol] = PriceQuote.from_cache(cached)
            result.update(hits)
            self._track(list(hits))
            if len(hits) == len(pending):
                return result

        with channel.lock:
            if channel.in_flight:
                logger.info("%s: fetch already in flight, serving cache", channel.name)
                return self._fill_from_cache(channel, pending, result)
            if not channel.limiter.try_acquire():
                wait = channel.limiter.time_until_next_call()
                if force:
                    raise RateLimitedError(channel.name, wait)
                logger.info("%s: rate limited for %.0fs, serving cache", channel.name, wait)
                return self._fill_from_cache(channel, pending, result)
            channel.in_flight = True

        try:
            chain_result = channel.chain.fetch(pending)
        finally:
            with channel.lock:
                channel.in_flight = False

        if chain_result is None:
            logger.warning("%s: no provider answered, serving cache for %s", channel.name, pending)
            return self._fill_from_cache(channel, pending, result)

        fetched = {
            normalize_symbol(symbol): quote
            for symbol, quote in chain_result.quotes.items()
            if normalize_symbol(symbol) in pending
        }
        self._store(channel, fetched, chain_result.ttl_seconds)
        result.update(fetched)
        self._notify(fetched)
        return self._fill_from_cache(channel, pending, result)

    def _fill_from_cache(
        self,
        channel: PriceChannel,
        symbols: list[str],
        result: dict[str, PriceQuote],
    ) -> dict[str, PriceQuote]:
        for symbol in symbols:
            if symbol in result:
                continue
            cached = self._cached(channel, symbol)
            if cached is not None:
                result[symbol] = cached
        return result

    @staticmethod
    def _cached(channel: PriceChannel, symbol: str) -> Optional[PriceQuote]:
        data = channel.fresh.get(symbol)
        if data is None:
            data = channel.last_known.get(symbol)
        return PriceQuote.from_cache(data) if data is not None else None

    def _store(self, channel: PriceChannel, quotes: dict[str, PriceQuote], ttl_seconds: int) -> None:
        for symbol, quote in quotes.items():
            payload = quote.to_cache()
            channel.fresh.set(symbol, payload, ttl_seconds)
            channel.last_known.set(symbol, payload, self._last_known_ttl)
        self._track(list(quotes))

    def _track(self, symbols: list[str]) -> None:
        if not symbols:
            return
        with self._tracked_lock:
            for symbol in symbols:
                self._tracked[symbol] = None
                self._tracked.move_to_end(symbol)
            while len(self._tracked) > self._max_tracked:
                self._tracked.popitem(last=False)

    def _notify(self, quotes: dict[str, PriceQuote]) -> None:
        if not quotes:
            return
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(quotes)
            except Exception:
                logger.exception("Price listener failed")

    def _stable_quote(self, symbol: str) -> PriceQuote:
        return PriceQuote(
            symbol=symbol,
            price=Decimal("1"),
            source="stablecoin",
            as_of=from_timestamp(self._clock()),
            change_24h_pct=Decimal("0"),
        )


def create_price_service(
    settings: Settings,
    storage: KeyValueRepository,
    clock: Callable[[], float] = time.time,
    client: Optional[httpx.Client] = None,
) -> PriceCacheService:
    """
    Build the simple and detailed chains from settings.

    All providers share one HTTP client. When none is passed in, the
    service creates and owns it, and close() releases it.
    """
    owned_client = None
    if client is None:
        client = owned_client = httpx.Client(timeout=settings.provider_timeout_seconds)
    relays = relays_from_templates(settings.cors_relays) if settings.coingecko_via_relays else []
    timeout = settings.provider_timeout_seconds
    available = {
        "binance": lambda: BinanceTickerProvider(
            settings.binance_base_url,
            settings.simple_price_ttl_seconds,
            timeout_seconds=timeout,
            client=client,
        ),
        "coingecko": lambda: CoinGeckoSimplePriceProvider(
            settings.coingecko_base_url,
            settings.simple_price_ttl_seconds,
            timeout_seconds=timeout,
            relays=relays,
            client=client,
        ),
        "tokenmetrics": lambda: TokenMetricsProvider(
            settings.tokenmetrics_base_url,
            settings.simple_price_ttl_seconds,
            api_key=settings.tokenmetrics_api_key,
            timeout_seconds=timeout,
            client=client,
        ),
    }
    unknown = [name for name in settings.simple_price_providers if name not in available]
    if unknown:
        logger.warning("Ignoring unknown price providers: %s", unknown)
    simple_chain = ProviderChain(
        "prices.simple",
        [available[name]() for name in settings.simple_price_providers if name in available],
    )
    detailed_chain = ProviderChain(
        "prices.detailed",
        [
            CoinGeckoMarketsProvider(
                settings.coingecko_base_url,
                settings.detailed_price_ttl_seconds,
                timeout_seconds=timeout,
                relays=relays,
                client=client,
            )
        ],
    )

    def channel(chain: ProviderChain, ttl: int) -> PriceChannel:
        return build_channel(
            chain,
            storage,
            min_interval_seconds=settings.manual_min_interval_seconds,
            max_calls_per_window=settings.max_calls_per_window,
            window_seconds=settings.rate_window_seconds,
            default_ttl_seconds=ttl,
            clock=clock,
        )

    return PriceCacheService(
        simple=channel(simple_chain, settings.simple_price_ttl_seconds),
        detailed=channel(detailed_chain, settings.detailed_price_ttl_seconds),
        last_known_ttl_seconds=settings.last_known_ttl_seconds,
        clock=clock,
        max_tracked_symbols=settings.max_tracked_symbols,
        http_client=owned_client,
    )
