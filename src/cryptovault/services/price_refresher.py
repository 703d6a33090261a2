"""Background periodic price refresh."""

import logging
import threading
from typing import Callable, Optional

from cryptovault.core.exceptions import RateLimitedError
from cryptovault.services.price_cache_service import PriceCacheService
from cryptovault.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class PriceRefresher:
    """
    Periodically reloads prices for the symbols a source reports.

    Gated by its own passive limiter so background traffic stays far
    below the on-demand budget. stop() interrupts the wait immediately.
    """

    def __init__(
        self,
        price_service: PriceCacheService,
        symbol_source: Callable[[], list[str]],
        limiter: RateLimiter,
        interval_seconds: float = 300,
    ):
        self._price_service = price_service
        self._symbol_source = symbol_source
        self._limiter = limiter
        self._interval = interval_seconds
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="price-refresher", daemon=True)
        self._thread.start()
        logger.info("Price refresher started (every %ss)", self._interval)

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
            logger.info("Price refresher stopped")

    def __enter__(self) -> "PriceRefresher":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()

    def run_once(self) -> bool:
        """One refresh attempt. Returns True if a reload was issued."""
        symbols = self._symbol_source()
        if not symbols:
            return False
        # The passive slot is only spent when the reload itself can go out
        if not self._price_service.can_reload():
            logger.info("Background refresh deferred: price channel is rate limited")
            return False
        if not self._limiter.try_acquire():
            logger.info(
                "Background refresh skipped, next allowed in %.0fs",
                self._limiter.time_until_next_call(),
            )
            return False
        try:
            self._price_service.reload(symbols)
        except RateLimitedError as e:
            logger.info("Background refresh rate limited: %s", e.message)
            return False
        return True

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.run_once()
            except Exception:
                logger.exception("Background price refresh failed")
            if self._stop_event.wait(self._interval):
                break
