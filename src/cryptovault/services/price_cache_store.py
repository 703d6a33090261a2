"""Generic namespaced TTL store for price data."""

import logging
import threading
import time
from typing import Any, Callable, Optional

from cryptovault.core.symbols import normalize_symbol
from cryptovault.repositories.protocols import KeyValueRepository

logger = logging.getLogger(__name__)


class PriceCacheStore:
    """
    Key -> JSON value store with a per-entry TTL, persisted through a
    KeyValueRepository under ``<namespace>:<SYMBOL>``.

    Keys are normalised symbols, so ``btc``, ``BTC`` and ``BTC/USDT``
    share one slot. Expired entries are deleted on read.
    """

    def __init__(
        self,
        storage: KeyValueRepository,
        namespace: str,
        clock: Callable[[], float] = time.time,
    ):
        self._storage = storage
        self.namespace = namespace
        self._clock = clock
        self._lock = threading.Lock()

    def _storage_key(self, key: str) -> str:
        return f"{self.namespace}:{normalize_symbol(key)}"

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None if absent or expired."""
        storage_key = self._storage_key(key)
        with self._lock:
            record = self._storage.get(storage_key)
            if record is None:
                return None
            if self._is_expired(record):
                self._storage.delete(storage_key)
                return None
            return record["value"]

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store a value that expires ttl_seconds from now."""
        record = {"value": value, "written_at": self._clock(), "ttl": ttl_seconds}
        with self._lock:
            self._storage.set(self._storage_key(key), record)

    def delete(self, key: str) -> None:
        with self._lock:
            self._storage.delete(self._storage_key(key))

    def keys(self) -> list[str]:
        """Normalised symbols currently stored, expired or not."""
        prefix = f"{self.namespace}:"
        return [k[len(prefix):] for k in self._storage.keys(prefix)]

    def purge_expired(self) -> int:
        """Delete every expired entry in this namespace. Returns count removed."""
        removed = 0
        prefix = f"{self.namespace}:"
        with self._lock:
            for storage_key in self._storage.keys(prefix):
                record = self._storage.get(storage_key)
                if record is None or self._is_expired(record):
                    self._storage.delete(storage_key)
                    removed += 1
        if removed:
            logger.debug("Purged %d expired entries from %s", removed, self.namespace)
        return removed

    def _is_expired(self, record: dict) -> bool:
        try:
            return self._clock() - float(record["written_at"]) >= float(record["ttl"])
        except (KeyError, TypeError, ValueError):
            # Unreadable records are treated as expired
            return True
