"""Journal service: CRUD for a user's own entries."""

import uuid
from dataclasses import dataclass, fields
from datetime import datetime
from decimal import Decimal
from typing import Optional

from cryptovault.core.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    translate_store_errors,
)
from cryptovault.core.timezone import now_utc
from cryptovault.domain.models import Currency, Entry, EntryType, TradeSide, TRADE_TYPES
from cryptovault.repositories.protocols import EntryRepository

MAX_LEVERAGE = 1000


@dataclass
class EntryCreate:
    """Input data for creating an entry."""

    entry_type: EntryType
    asset: str
    date: Optional[datetime] = None
    symbol: Optional[str] = None
    quantity: Optional[Decimal] = None
    price_usd: Optional[Decimal] = None
    fees: Decimal = Decimal("0")
    pnl: Decimal = Decimal("0")
    side: Optional[TradeSide] = None
    leverage: Optional[int] = None
    currency: Currency = Currency.USD
    is_personal: bool = False
    notes: Optional[str] = None
    platform: Optional[str] = None


@dataclass
class EntryUpdate:
    """Partial update data for editing an entry. None means unchanged."""

    entry_type: Optional[EntryType] = None
    asset: Optional[str] = None
    date: Optional[datetime] = None
    symbol: Optional[str] = None
    quantity: Optional[Decimal] = None
    price_usd: Optional[Decimal] = None
    fees: Optional[Decimal] = None
    pnl: Optional[Decimal] = None
    side: Optional[TradeSide] = None
    leverage: Optional[int] = None
    currency: Optional[Currency] = None
    is_personal: Optional[bool] = None
    notes: Optional[str] = None
    platform: Optional[str] = None


class JournalService:
    """
    Owner-only mutations of journal entries.

    Shared entries reach other users read-only through the aggregator;
    every mutation here checks ownership before the store is touched.
    """

    def __init__(self, entry_repo: EntryRepository):
        self._entry_repo = entry_repo

    def create_entry(self, owner_id: str, data: EntryCreate) -> Entry:
        now = now_utc()
        entry = Entry(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            entry_type=data.entry_type,
            asset=(data.asset or "").strip(),
            symbol=data.symbol.strip().upper() if data.symbol else None,
            date=data.date or now,
            quantity=data.quantity,
            price_usd=data.price_usd,
            fees=data.fees,
            pnl=data.pnl,
            side=data.side,
            leverage=data.leverage,
            currency=data.currency,
            is_personal=data.is_personal,
            notes=data.notes,
            platform=data.platform,
            created_at=now,
        )
        self._validate(entry)
        with translate_store_errors("create entry"):
            return self._entry_repo.create(entry)

    def get_entry(self, acting_user_id: str, entry_id: str) -> Entry:
        return self._load_owned(acting_user_id, entry_id)

    def list_entries(self, owner_id: str, limit: Optional[int] = None) -> list[Entry]:
        """Own entries, newest first."""
        with translate_store_errors("list entries"):
            return self._entry_repo.list_by_owner(owner_id, limit=limit)

    def update_entry(self, acting_user_id: str, entry_id: str, patch: EntryUpdate) -> Entry:
        entry = self._load_owned(acting_user_id, entry_id)
        for f in fields(patch):
            value = getattr(patch, f.name)
            if value is not None:
                setattr(entry, f.name, value)
        if patch.symbol is not None:
            entry.symbol = patch.symbol.strip().upper() or None
        if patch.asset is not None:
            entry.asset = patch.asset.strip()
        self._validate(entry)
        with translate_store_errors("update entry"):
            return self._entry_repo.update(entry)

    def delete_entry(self, acting_user_id: str, entry_id: str) -> None:
        self._load_owned(acting_user_id, entry_id)
        with translate_store_errors("delete entry"):
            self._entry_repo.delete(entry_id)

    def _load_owned(self, acting_user_id: str, entry_id: str) -> Entry:
        with translate_store_errors("load entry"):
            entry = self._entry_repo.get_by_id(entry_id)
        if not entry:
            raise NotFoundError("Entry", entry_id)
        if entry.owner_id != acting_user_id:
            raise PermissionDeniedError("Entries can only be changed by their owner")
        return entry

    @staticmethod
    def _validate(entry: Entry) -> None:
        if not entry.asset:
            raise ValidationError("Asset is required")
        if entry.quantity is not None and entry.quantity <= 0:
            raise ValidationError("Quantity must be positive")
        if entry.price_usd is not None and entry.price_usd <= 0:
            raise ValidationError("Price must be positive")
        if entry.fees < 0:
            raise ValidationError("Fees cannot be negative")
        if entry.side is not None and entry.entry_type not in TRADE_TYPES:
            raise ValidationError("Side is only valid for spot and futures entries")
        if entry.leverage is not None:
            if entry.entry_type != EntryType.FUTURES:
                raise ValidationError("Leverage is only valid for futures entries")
            if not 1 <= entry.leverage <= MAX_LEVERAGE:
                raise ValidationError(f"Leverage must be between 1 and {MAX_LEVERAGE}")
