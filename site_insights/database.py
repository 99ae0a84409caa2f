"""Database engine and session management for the local scan store.

SQLite by default; any SQLAlchemy URL works, which is how the store is
swapped for the production database.
"""

import os
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///data/site_insights.db"


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


_engine: Engine | None = None
_SessionFactory: sessionmaker | None = None


def _sqlite_pragmas(dbapi_conn, connection_record):
    """WAL journal, relaxed fsync and enforced foreign keys on every connection."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL;")
    cursor.execute("PRAGMA synchronous=NORMAL;")
    cursor.execute("PRAGMA foreign_keys=ON;")
    cursor.execute("PRAGMA busy_timeout=5000;")
    cursor.close()


def resolve_database_url(database_url: str | None = None) -> str:
    """Explicit argument, then ``DATABASE_URL``, then the bundled SQLite file."""
    return database_url or os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL


def get_engine(database_url: str | None = None, echo: bool = False) -> Engine:
    """Return (and cache) the global SQLAlchemy engine.

    Args:
        database_url: SQLAlchemy connection string.  See
                      :func:`resolve_database_url` for the fallbacks.
        echo: Whether to log every SQL statement.
    """
    global _engine
    if _engine is not None:
        return _engine

    url = make_url(resolve_database_url(database_url))
    kwargs: dict = {"echo": echo, "pool_pre_ping": True}

    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            # One shared connection, otherwise each thread sees an empty DB.
            kwargs["poolclass"] = StaticPool
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    _engine = create_engine(url, **kwargs)
    if url.get_backend_name() == "sqlite":
        event.listen(_engine, "connect", _sqlite_pragmas)
    logger.info("Database engine created: %s", url.render_as_string(hide_password=True))
    return _engine


def get_session_factory(engine: Engine | None = None) -> sessionmaker:
    """Return (and cache) the global session factory."""
    global _SessionFactory
    if _SessionFactory is not None:
        return _SessionFactory
    if engine is None:
        engine = get_engine()
    _SessionFactory = sessionmaker(bind=engine, expire_on_commit=False)
    return _SessionFactory


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Transactional session: commits on success, rolls back on error.

    Usage::

        with get_session() as session:
            record_scan(session, project_id, crawl)
    """
    session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(database_url: str | None = None, echo: bool = False) -> None:
    """Create the project, scan, issue and snapshot tables if missing."""
    engine = get_engine(database_url=database_url, echo=echo)
    # Side-effect import: registers all models with Base.metadata
    import site_insights.models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created / verified.")


def reset_db(database_url: str | None = None) -> None:
    """Drop and recreate every table.  **Destructive**, use only in tests."""
    engine = get_engine(database_url=database_url)
    import site_insights.models  # noqa: F401
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    logger.warning("Database has been reset (all tables dropped and recreated).")


def reset_engine() -> None:
    """Dispose of the cached engine and session factory (used by tests)."""
    global _engine, _SessionFactory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None
