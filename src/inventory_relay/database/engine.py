"""Engine and session plumbing for the inventory store.

The store is a single SQLite file shared by the relay hub and the CLI.
``DATABASE_URL`` overrides it for anything else SQLAlchemy can reach.
"""

import os
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from inventory_relay.models.db_models import Base

DEFAULT_DB_PATH = Path("data") / "inventory_relay.db"
DB_PATH_ENV = "INVENTORY_RELAY_DB_PATH"
DATABASE_URL_ENV = "DATABASE_URL"

# SQLite busy timeout, long enough to ride out a concurrent ingest commit.
SQLITE_BUSY_TIMEOUT = 30

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def get_database_url(db_path: Path | None = None) -> str:
    """Resolve the store URL.

    Priority:
        1. DATABASE_URL environment variable
        2. Explicit db_path argument
        3. INVENTORY_RELAY_DB_PATH environment variable
        4. data/inventory_relay.db
    """
    if url := os.environ.get(DATABASE_URL_ENV):
        return url
    return f"sqlite:///{_sqlite_path(db_path)}"


def _sqlite_path(db_path: Path | None) -> Path:
    if db_path is not None:
        return db_path
    return Path(os.environ.get(DB_PATH_ENV) or DEFAULT_DB_PATH)


def _enable_wal(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def get_engine(db_path: Path | str | None = None, echo: bool = False) -> Engine:
    """Return the process-wide engine, creating the store on first call."""
    global _engine

    if _engine is not None:
        return _engine

    path = Path(db_path) if db_path else None
    url = get_database_url(path)
    if not url.startswith("sqlite"):
        _engine = create_engine(url, echo=echo)
    else:
        if not os.environ.get(DATABASE_URL_ENV):
            _sqlite_path(path).parent.mkdir(parents=True, exist_ok=True)
        _engine = create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT},
        )
        event.listen(_engine, "connect", _enable_wal)

    Base.metadata.create_all(_engine)
    return _engine


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Open a session on the shared engine; closed on exit, never committed."""
    global _session_factory

    if _session_factory is None:
        _session_factory = sessionmaker(autoflush=False, bind=get_engine())
    session = _session_factory()
    try:
        yield session
    finally:
        session.close()


def init_db(db_path: Path | str | None = None, echo: bool = False) -> Engine:
    """Create the store and its tables."""
    return get_engine(db_path, echo)


def reset_engine() -> None:
    """Drop the cached engine and session factory."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
