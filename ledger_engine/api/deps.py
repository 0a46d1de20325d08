"""Common dependencies for API routes."""
from __future__ import annotations

from collections.abc import Iterator

from fastapi import Request
from sqlalchemy.orm import Session

from ledger_engine.core.config import Settings, get_settings
from ledger_engine.db.session import read_only_session


def get_db_session() -> Iterator[Session]:
    """Yield a database session for FastAPI dependencies; nothing is committed."""
    with read_only_session() as session:
        yield session


def get_app_settings(request: Request) -> Settings:
    """Settings the running application was created with."""
    return getattr(request.app.state, "settings", None) or get_settings()


__all__ = ["get_app_settings", "get_db_session"]
