"""Engine and per-request sessions for the collaboration store."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from ozark_collab.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Models register their tables on Base.metadata at import time.
import ozark_collab.models  # noqa: E402,F401


def build_engine(url: str) -> Engine:
    """Create the engine for ``url``.

    SQLite gets cross-thread access (FastAPI runs sync dependencies in a
    thread pool) and enforced foreign keys so ``ON DELETE CASCADE`` holds.
    """
    is_sqlite = url.startswith("sqlite")
    built = create_engine(
        url,
        pool_pre_ping=True,
        echo=settings.sql_debug,
        connect_args={"check_same_thread": False} if is_sqlite else {},
    )
    if is_sqlite:
        event.listen(built, "connect", _enable_sqlite_foreign_keys)
    return built


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = build_engine(settings.effective_database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a request-scoped session and close it afterwards."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """Create every table on the configured engine (SQLite development only)."""
    Base.metadata.create_all(bind=engine)
