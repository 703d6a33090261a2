"""Key-value repository protocol for durable local state."""

from typing import Any, Protocol, Optional


class KeyValueRepository(Protocol):
    """
    Interface for namespaced JSON key-value storage.

    Backs rate limiter state, price cache entries and visibility toggles.
    """

    def get(self, key: str) -> Optional[Any]:
        """Return the stored JSON value, or None."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Insert or replace a JSON-serialisable value."""
        ...

    def delete(self, key: str) -> None:
        """Remove a key if present."""
        ...

    def keys(self, prefix: str = "") -> list[str]:
        """List keys starting with prefix."""
        ...
