"""Engine and session factory shared by the API and scripts.

The database URL comes from ``DATABASE_URL`` (see ``jobportal.core.config``)
and falls back to a local SQLite file. SQLite connections get foreign key
enforcement switched on so the cascade rules declared on the models hold
there as well as on a server database.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from jobportal.core.config import settings


def _coalesce_url(url: str | None = None) -> str:
    return url or settings.DATABASE_URL or "sqlite:///./jobportal.db"


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """Turn on ``PRAGMA foreign_keys`` for every new SQLite connection."""
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def make_engine(url: str | None = None) -> Engine:
    """Create a SQLAlchemy engine; ``pool_pre_ping`` avoids stale connections."""
    url = _coalesce_url(url)

    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            pool_pre_ping=True,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_engine(url, pool_pre_ping=True)

    enable_sqlite_foreign_keys(engine)
    return engine


engine: Engine = make_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@contextmanager
def get_session() -> Iterator[Session]:
    """Context manager that yields a DB session and ensures cleanup.

    Callers commit explicitly; anything uncommitted is rolled back on close.
    """
    session: Session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def get_db() -> Iterator[Session]:
    """FastAPI dependency: one session per request."""
    with get_session() as session:
        yield session


def check_connection() -> bool:
    """Lightweight connectivity check. Returns True on success."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
