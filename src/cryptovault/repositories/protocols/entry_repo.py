"""Entry repository protocol."""

from datetime import datetime
from decimal import Decimal
from typing import Protocol, Optional

from cryptovault.domain.models import Entry, EntryType


class EntryRepository(Protocol):
    """Interface for journal entry data access."""

    def create(self, entry: Entry) -> Entry:
        """Persist a new entry."""
        ...

    def get_by_id(self, entry_id: str) -> Optional[Entry]:
        """Retrieve entry by ID."""
        ...

    def update(self, entry: Entry) -> Entry:
        """Update an existing entry."""
        ...

    def delete(self, entry_id: str) -> None:
        """Delete an entry (hard delete)."""
        ...

    def list_by_owner(self, owner_id: str, limit: Optional[int] = None) -> list[Entry]:
        """List an owner's entries, newest first."""
        ...

    def query(
        self,
        owner_id: str,
        entry_types: Optional[list[EntryType]] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        min_pnl: Optional[Decimal] = None,
        include_personal: bool = True,
        limit: Optional[int] = None,
    ) -> list[Entry]:
        """Query an owner's entries with filters, newest first."""
        ...
