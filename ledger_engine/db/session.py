"""SQLAlchemy engine and session management."""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from ledger_engine.core.config import Settings, get_settings
from ledger_engine.obs import instrument_sqlalchemy_engine


def build_engine(settings: Settings) -> Engine:
    """Create the engine for ``settings.database_url``."""
    options: dict[str, Any] = {"pool_pre_ping": True}
    if settings.database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    engine = create_engine(settings.database_url, **options)
    if settings.enable_tracing:
        instrument_sqlalchemy_engine(engine)
    return engine


engine = build_engine(get_settings())
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_session() -> Iterator[Session]:
    """Provide a transactional scope around a series of writes."""
    session: Session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def read_only_session() -> Iterator[Session]:
    """Session for ledger reads; whatever it did is rolled back on exit."""
    session: Session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


__all__ = ["SessionLocal", "build_engine", "engine", "get_session", "read_only_session"]
