"""SQLAlchemy implementation of EntryRepository."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import and_
from sqlalchemy.orm import Session

from cryptovault.core.timezone import to_naive_utc, from_naive_utc
from cryptovault.domain.models import Entry, EntryType
from cryptovault.repositories.sqlalchemy.orm_models import EntryORM, utcnow_naive


class SqlAlchemyEntryRepository:
    """SQLAlchemy-backed journal entry repository."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, entry: Entry) -> Entry:
        """Persist a new entry."""
        orm_entry = self._to_orm(entry)
        self._db.add(orm_entry)
        self._db.commit()
        self._db.refresh(orm_entry)
        return self._to_domain(orm_entry)

    def get_by_id(self, entry_id: str) -> Optional[Entry]:
        """Retrieve entry by ID."""
        orm_entry = self._db.query(EntryORM).filter(
            EntryORM.id == entry_id
        ).first()
        return self._to_domain(orm_entry) if orm_entry else None

    def update(self, entry: Entry) -> Entry:
        """Update an existing entry."""
        orm_entry = self._db.query(EntryORM).filter(
            EntryORM.id == entry.id
        ).first()
        if not orm_entry:
            raise ValueError(f"Entry not found: {entry.id}")

        orm_entry.entry_type = entry.entry_type
        orm_entry.asset = entry.asset
        orm_entry.symbol = entry.symbol
        orm_entry.date = to_naive_utc(entry.date)
        orm_entry.quantity = entry.quantity
        orm_entry.price_usd = entry.price_usd
        orm_entry.fees = entry.fees
        orm_entry.pnl = entry.pnl
        orm_entry.side = entry.side
        orm_entry.leverage = entry.leverage
        orm_entry.currency = entry.currency
        orm_entry.is_personal = entry.is_personal
        orm_entry.notes = entry.notes
        orm_entry.platform = entry.platform
        orm_entry.updated_at = utcnow_naive()

        self._db.commit()
        self._db.refresh(orm_entry)
        return self._to_domain(orm_entry)

    def delete(self, entry_id: str) -> None:
        """Delete an entry."""
        self._db.query(EntryORM).filter(EntryORM.id == entry_id).delete()
        self._db.commit()

    def list_by_owner(self, owner_id: str, limit: Optional[int] = None) -> list[Entry]:
        """List an owner's entries, newest first."""
        return self.query(owner_id=owner_id, limit=limit)

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
        conditions = [EntryORM.owner_id == owner_id]
        if entry_types is not None:
            conditions.append(EntryORM.entry_type.in_(entry_types))
        if date_from:
            conditions.append(EntryORM.date >= to_naive_utc(date_from))
        if date_to:
            conditions.append(EntryORM.date <= to_naive_utc(date_to))
        if min_pnl is not None:
            conditions.append(EntryORM.pnl >= min_pnl)
        if not include_personal:
            conditions.append(EntryORM.is_personal == False)  # noqa: E712

        query = (
            self._db.query(EntryORM)
            .filter(and_(*conditions))
            .order_by(EntryORM.date.desc(), EntryORM.created_at.desc())
        )
        if limit:
            query = query.limit(limit)
        return [self._to_domain(e) for e in query.all()]

    @staticmethod
    def _to_orm(entry: Entry) -> EntryORM:
        """Convert domain model to ORM model."""
        return EntryORM(
            id=entry.id,
            owner_id=entry.owner_id,
            entry_type=entry.entry_type,
            asset=entry.asset,
            symbol=entry.symbol,
            date=to_naive_utc(entry.date),
            quantity=entry.quantity,
            price_usd=entry.price_usd,
            fees=entry.fees,
            pnl=entry.pnl,
            side=entry.side,
            leverage=entry.leverage,
            currency=entry.currency,
            is_personal=entry.is_personal,
            notes=entry.notes,
            platform=entry.platform,
            created_at=to_naive_utc(entry.created_at) or utcnow_naive(),
            updated_at=to_naive_utc(entry.updated_at),
        )

    @staticmethod
    def _to_domain(orm: EntryORM) -> Entry:
        """Convert ORM model to domain model."""
        return Entry(
            id=orm.id,
            owner_id=orm.owner_id,
            entry_type=orm.entry_type,
            asset=orm.asset,
            symbol=orm.symbol,
            date=from_naive_utc(orm.date),
            quantity=Decimal(str(orm.quantity)) if orm.quantity is not None else None,
            price_usd=Decimal(str(orm.price_usd)) if orm.price_usd is not None else None,
            fees=Decimal(str(orm.fees)) if orm.fees else Decimal("0"),
            pnl=Decimal(str(orm.pnl)) if orm.pnl else Decimal("0"),
            side=orm.side,
            leverage=orm.leverage,
            currency=orm.currency,
            is_personal=bool(orm.is_personal),
            notes=orm.notes,
            platform=orm.platform,
            created_at=from_naive_utc(orm.created_at),
            updated_at=from_naive_utc(orm.updated_at),
        )
