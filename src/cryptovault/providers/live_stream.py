"""Optional push channel: Binance mini-ticker websocket stream.

Combined stream messages look like
``{"stream": "btcusdt@miniTicker", "data": {"s": "BTCUSDT", "c": "...", "o": "..."}}``
where ``c`` is the last price and ``o`` the price 24h ago.
"""

import json
import logging
import threading
from decimal import Decimal
from typing import Callable, Optional

import websocket

from cryptovault.core.symbols import normalize_symbols
from cryptovault.core.timezone import now_utc
from cryptovault.domain.models import PriceQuote
from cryptovault.providers.base import to_decimal
from cryptovault.providers.binance import QUOTE_ASSET

logger = logging.getLogger(__name__)

QuoteListener = Callable[[PriceQuote], None]


class LiveTickerStream:
    """
    Threaded websocket client feeding live ticks to a listener.

    Usage:
        stream = LiveTickerStream(url, price_service.ingest_quote)
        stream.start(["BTC", "ETH"])
        ...
        stream.stop()
    """

    name = "binance_stream"

    def __init__(
        self,
        stream_url: str,
        on_quote: QuoteListener,
        reconnect_initial: float = 1.0,
        reconnect_max: float = 60.0,
    ):
        self.stream_url = stream_url.rstrip("/")
        self._on_quote = on_quote
        self._reconnect_initial = reconnect_initial
        self._reconnect_max = reconnect_max
        self._reconnect_delay = reconnect_initial
        self._symbols: list[str] = []
        self._ws: Optional[websocket.WebSocketApp] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._resubscribing = False
        self._connected = False
        self._stats = {"messages_received": 0, "ticks": 0, "parse_errors": 0, "reconnects": 0}

    # Lifecycle

    def start(self, symbols: list[str]) -> None:
        self._symbols = normalize_symbols(symbols)
        if not self._symbols:
            logger.info("Live stream not started: no symbols")
            return
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name="live-ticker-stream", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        if self._ws is not None:
            try:
                self._ws.close()
            except Exception:
                logger.debug("Error closing live stream socket", exc_info=True)
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def update_symbols(self, symbols: list[str]) -> bool:
        """
        Switch the subscription to a new symbol set.

        The open socket is closed so the run loop reconnects with the new
        stream URL. Returns False when the set is unchanged.
        """
        new_symbols = normalize_symbols(symbols)
        if not new_symbols or set(new_symbols) == set(self._symbols):
            return False
        self._symbols = new_symbols
        logger.info("Live stream resubscribing for %d symbols", len(new_symbols))
        if self._ws is not None:
            self._resubscribing = True
            try:
                self._ws.close()
            except Exception:
                logger.debug("Error closing live stream socket", exc_info=True)
        return True

    def __enter__(self) -> "LiveTickerStream":
        return self

    def __exit__(self, *exc) -> None:
        self.stop()

    def is_connected(self) -> bool:
        return self._connected

    def get_stats(self) -> dict:
        return dict(self._stats)

    def build_url(self) -> str:
        streams = "/".join(f"{s.lower()}{QUOTE_ASSET.lower()}@miniTicker" for s in self._symbols)
        return f"{self.stream_url}?streams={streams}"

    # Internal loop

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self._ws = websocket.WebSocketApp(
                    self.build_url(),
                    on_open=self._on_open,
                    on_message=self._on_message,
                    on_error=self._on_error,
                    on_close=self._on_close,
                )
                self._ws.run_forever(ping_interval=20, ping_timeout=10)
            except Exception:
                logger.warning("Live stream connection failed", exc_info=True)

            if self._resubscribing:
                self._resubscribing = False
                continue
            if self._stop_event.wait(self._reconnect_delay):
                break
            self._reconnect_delay = min(self._reconnect_delay * 2, self._reconnect_max)
            self._stats["reconnects"] += 1

    def _on_open(self, ws) -> None:
        self._connected = True
        self._reconnect_delay = self._reconnect_initial
        logger.info("Live stream connected for %d symbols", len(self._symbols))

    def _on_message(self, ws, message: str) -> None:
        self._stats["messages_received"] += 1
        quote = self.parse_message(message)
        if quote is None:
            return
        self._stats["ticks"] += 1
        try:
            self._on_quote(quote)
        except Exception:
            logger.exception("Live quote listener failed for %s", quote.symbol)

    def _on_error(self, ws, error) -> None:
        logger.warning("Live stream error: %s", error)

    def _on_close(self, ws, close_status_code, close_msg) -> None:
        self._connected = False
        logger.info("Live stream closed (%s)", close_status_code)

    # Message parsing

    def parse_message(self, message: str) -> Optional[PriceQuote]:
        """Turn one combined-stream message into a quote, or None."""
        try:
            payload = json.loads(message)
        except ValueError:
            self._stats["parse_errors"] += 1
            return None

        data = payload.get("data", payload) if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            return None

        pair = str(data.get("s") or "")
        if not pair.endswith(QUOTE_ASSET):
            return None
        symbol = pair[: -len(QUOTE_ASSET)]
        close = to_decimal(data.get("c"))
        if close is None or close <= 0:
            self._stats["parse_errors"] += 1
            return None

        change = None
        open_price = to_decimal(data.get("o"))
        if open_price is not None and open_price > 0:
            change = ((close - open_price) / open_price * Decimal("100")).quantize(Decimal("0.0001"))

        return PriceQuote(
            symbol=symbol,
            price=close,
            source=self.name,
            as_of=now_utc(),
            change_24h_pct=change,
        )
