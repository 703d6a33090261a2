"""SQLAlchemy ORM model definitions."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Enum as SqlEnum,
)

from cryptovault.core.timezone import now_utc
from cryptovault.domain.models.enums import EntryType, TradeSide, GrantStatus, Currency
from cryptovault.repositories.sqlalchemy.database import Base


def utcnow_naive() -> datetime:
    """SQLite has no timezone support; datetimes are stored as naive UTC."""
    return now_utc().replace(tzinfo=None)


class ProfileORM(Base):
    """SQLAlchemy model for Profile."""

    __tablename__ = "profiles"

    user_id = Column(String(36), primary_key=True)
    username = Column(String(255), unique=True, nullable=False)
    avatar_url = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow_naive)


class EntryORM(Base):
    """SQLAlchemy model for Entry (journal row)."""

    __tablename__ = "entries"
    __table_args__ = (Index("ix_entries_owner_date", "owner_id", "date"),)

    id = Column(String(36), primary_key=True)
    owner_id = Column(String(36), nullable=False)
    entry_type = Column(SqlEnum(EntryType), nullable=False)
    asset = Column(String(64), nullable=False)
    symbol = Column(String(32), nullable=True)
    date = Column(DateTime, nullable=False)
    quantity = Column(Numeric(precision=28, scale=10), nullable=True)
    price_usd = Column(Numeric(precision=28, scale=10), nullable=True)
    fees = Column(Numeric(precision=28, scale=10), default=Decimal("0"))
    pnl = Column(Numeric(precision=28, scale=10), default=Decimal("0"))
    side = Column(SqlEnum(TradeSide), nullable=True)
    leverage = Column(Integer, nullable=True)
    currency = Column(SqlEnum(Currency), default=Currency.USD, nullable=False)
    is_personal = Column(Boolean, default=False, nullable=False)
    notes = Column(Text, nullable=True)
    platform = Column(String(64), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow_naive)
    updated_at = Column(DateTime, nullable=True, onupdate=utcnow_naive)


class AccessGrantORM(Base):
    """SQLAlchemy model for AccessGrant."""

    __tablename__ = "access_grants"
    __table_args__ = (Index("ix_access_grants_pair", "viewer_id", "sharer_id"),)

    id = Column(String(36), primary_key=True)
    sharer_id = Column(String(36), nullable=False, index=True)
    viewer_id = Column(String(36), nullable=False, index=True)
    status = Column(SqlEnum(GrantStatus), nullable=False, default=GrantStatus.PENDING)
    shared_types = Column(JSON, nullable=False, default=list)
    expires_at = Column(DateTime, nullable=True)
    date_from = Column(DateTime, nullable=True)
    date_to = Column(DateTime, nullable=True)
    min_pnl = Column(Numeric(precision=28, scale=10), nullable=True)
    message = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow_naive)
    updated_at = Column(DateTime, nullable=True, onupdate=utcnow_naive)


class KeyValueORM(Base):
    """SQLAlchemy model for durable JSON key-value state."""

    __tablename__ = "kv_store"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=utcnow_naive, onupdate=utcnow_naive)
