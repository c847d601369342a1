"""Request-scoped dependencies shared by the routers."""
from __future__ import annotations

from collections.abc import Iterator

from sqlalchemy.orm import Session

from politirate.db.session import SessionLocal


def get_db_session() -> Iterator[Session]:
    """One session per request; anything left uncommitted is discarded."""

    session: Session = SessionLocal()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = ["get_db_session"]
