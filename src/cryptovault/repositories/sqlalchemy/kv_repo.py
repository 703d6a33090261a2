"""SQLAlchemy implementation of KeyValueRepository."""

import json
from typing import Any, Optional

from sqlalchemy.orm import sessionmaker

from cryptovault.repositories.sqlalchemy.database import session_scope
from cryptovault.repositories.sqlalchemy.orm_models import KeyValueORM


class SqlAlchemyKeyValueRepository:
    """
    SQLAlchemy-backed JSON key-value store.

    Takes a session factory rather than a session: the price cache and
    rate limiters are long-lived and shared across request threads, so
    every operation runs in its own short session.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get(self, key: str) -> Optional[Any]:
        """Return the stored JSON value, or None."""
        with session_scope(self._session_factory) as db:
            row = db.get(KeyValueORM, key)
            return json.loads(row.value) if row else None

    def set(self, key: str, value: Any) -> None:
        """Insert or replace a JSON-serialisable value."""
        payload = json.dumps(value)
        with session_scope(self._session_factory) as db:
            db.merge(KeyValueORM(key=key, value=payload))

    def delete(self, key: str) -> None:
        """Remove a key if present."""
        with session_scope(self._session_factory) as db:
            db.query(KeyValueORM).filter(KeyValueORM.key == key).delete()

    def keys(self, prefix: str = "") -> list[str]:
        """List keys starting with prefix."""
        with session_scope(self._session_factory) as db:
            query = db.query(KeyValueORM.key)
            if prefix:
                query = query.filter(KeyValueORM.key.startswith(prefix, autoescape=True))
            return [row.key for row in query.order_by(KeyValueORM.key).all()]
