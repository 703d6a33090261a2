"""SQLAlchemy repository implementations."""

from cryptovault.repositories.sqlalchemy.database import (
    Base,
    build_engine,
    get_db,
    get_session_factory,
    session_scope,
)
from cryptovault.repositories.sqlalchemy.entry_repo import SqlAlchemyEntryRepository
from cryptovault.repositories.sqlalchemy.grant_repo import SqlAlchemyGrantRepository
from cryptovault.repositories.sqlalchemy.profile_repo import SqlAlchemyProfileRepository
from cryptovault.repositories.sqlalchemy.kv_repo import SqlAlchemyKeyValueRepository

__all__ = [
    "Base",
    "build_engine",
    "get_db",
    "get_session_factory",
    "session_scope",
    "SqlAlchemyEntryRepository",
    "SqlAlchemyGrantRepository",
    "SqlAlchemyProfileRepository",
    "SqlAlchemyKeyValueRepository",
]
