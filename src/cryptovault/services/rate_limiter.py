"""Durable per-provider call budget."""

import logging
import threading
import time
from dataclasses import dataclass, asdict
from typing import Callable, Optional

from cryptovault.repositories.protocols import KeyValueRepository

logger = logging.getLogger(__name__)


@dataclass
class RateLimitState:
    """Persisted limiter state. Timestamps are epoch seconds."""

    last_call_at: Optional[float] = None
    call_count: int = 0
    window_reset_at: float = 0.0


class RateLimiter:
    """
    Minimum-interval plus per-window budget limiter.

    Every attempt counts, success or failure, so a flaky provider cannot
    trigger a retry storm. State lives in the key-value store under
    ``ratelimit.<name>`` and survives restarts.
    """

    def __init__(
        self,
        name: str,
        storage: KeyValueRepository,
        min_interval_seconds: float,
        max_calls_per_window: int = 30,
        window_seconds: float = 3600,
        clock: Callable[[], float] = time.time,
    ):
        self.name = name
        self._storage = storage
        self.min_interval_seconds = min_interval_seconds
        self.max_calls_per_window = max_calls_per_window
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()

    @property
    def storage_key(self) -> str:
        return f"ratelimit.{self.name}"

    @property
    def call_count(self) -> int:
        """Calls recorded in the current window."""
        with self._lock:
            state = self._load()
            if self._clock() >= state.window_reset_at:
                return 0
            return state.call_count

    def can_call(self) -> bool:
        with self._lock:
            return self._wait_seconds(self._load()) <= 0

    def time_until_next_call(self) -> float:
        """Seconds until can_call() becomes true (0 if it already is)."""
        with self._lock:
            return self._wait_seconds(self._load())

    def record_call(self) -> None:
        """Count an attempt now."""
        with self._lock:
            self._record(self._load())

    def try_acquire(self) -> bool:
        """Atomically check can_call() and record the attempt if allowed."""
        with self._lock:
            state = self._load()
            if self._wait_seconds(state) > 0:
                return False
            self._record(state)
            return True

    def reset(self) -> None:
        with self._lock:
            self._storage.delete(self.storage_key)

    def _wait_seconds(self, state: RateLimitState) -> float:
        now = self._clock()
        wait = 0.0
        if state.last_call_at is not None:
            wait = state.last_call_at + self.min_interval_seconds - now
        if now < state.window_reset_at and state.call_count >= self.max_calls_per_window:
            wait = max(wait, state.window_reset_at - now)
        return max(0.0, wait)

    def _record(self, state: RateLimitState) -> None:
        now = self._clock()
        if now >= state.window_reset_at:
            state.call_count = 0
            state.window_reset_at = now + self.window_seconds
        state.call_count += 1
        state.last_call_at = now
        self._storage.set(self.storage_key, asdict(state))
        logger.debug("%s: call %d/%d in window", self.name, state.call_count, self.max_calls_per_window)

    def _load(self) -> RateLimitState:
        data = self._storage.get(self.storage_key)
        if not isinstance(data, dict):
            return RateLimitState()
        try:
            return RateLimitState(
                last_call_at=None if data.get("last_call_at") is None else float(data["last_call_at"]),
                call_count=int(data.get("call_count", 0)),
                window_reset_at=float(data.get("window_reset_at", 0.0)),
            )
        except (TypeError, ValueError):
            logger.warning("%s: discarding unreadable limiter state", self.name)
            return RateLimitState()
