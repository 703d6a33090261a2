"""Engine and session management.

Request handlers get one session per request (``get_db``). The key-value
store used by the price cache and rate limiters is shared across threads
(requests, background refresh, live stream), so it opens a short session
per operation through ``session_scope``.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Iterator, Optional

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from cryptovault.config.settings import get_settings

Base = declarative_base()

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def _is_file_sqlite(database_url: str) -> bool:
    return database_url.startswith("sqlite") and ":memory:" not in database_url


def build_engine(database_url: str, busy_timeout_ms: int = 5000) -> Engine:
    """
    Create an engine for database_url.

    File-backed SQLite runs in WAL mode with a busy timeout so the refresher
    thread can write cache entries while requests read.
    """
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    engine = create_engine(database_url, connect_args=connect_args, echo=False)

    if _is_file_sqlite(database_url):

        @event.listens_for(engine, "connect")
        def _sqlite_pragmas(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
            cursor.close()

    return engine


def _bind(engine: Engine) -> None:
    global _engine, _SessionLocal
    _engine = engine
    _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_engine() -> Engine:
    """Engine for the configured database, created on first use."""
    if _engine is None:
        settings = get_settings()
        _bind(build_engine(settings.get_database_url(), settings.sqlite_busy_timeout_ms))
    return _engine


def get_session_factory() -> sessionmaker:
    if _SessionLocal is None:
        get_engine()
    return _SessionLocal


@contextmanager
def session_scope(factory: sessionmaker) -> Iterator[Session]:
    """Session committed on success, rolled back on error, always closed."""
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: one session per request."""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def get_session() -> Session:
    """New session for callers outside a request (app context, scripts)."""
    return get_session_factory()()


def init_db() -> None:
    """Create tables on the configured database."""
    from cryptovault.repositories.sqlalchemy import orm_models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


def init_db_with_path(db_path: Path) -> None:
    """Point the module at a SQLite file and create its tables."""
    reset_database()
    _bind(build_engine(f"sqlite:///{db_path}", get_settings().sqlite_busy_timeout_ms))
    init_db()


def reset_database() -> None:
    """Dispose the engine so the next use reconnects with current settings."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None
