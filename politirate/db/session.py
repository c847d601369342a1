"""SQLAlchemy session management."""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from sqlalchemy import create_engine, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session, sessionmaker

from politirate.core.config import get_settings
from politirate.obs import instrument_sqlalchemy_engine

LOGGER = logging.getLogger(__name__)

SERIALIZATION_FAILURE = "40001"
SERIALIZABLE_ATTEMPTS = 3

T = TypeVar("T")


class TransactionConflictError(RuntimeError):
    """Raised when a serializable transaction keeps losing to concurrent writers."""


settings = get_settings()
engine = create_engine(settings.database_url, pool_pre_ping=True)
if settings.enable_tracing:
    instrument_sqlalchemy_engine(engine)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_session() -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""
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
def serializable_transaction(session: Session) -> Iterator[None]:
    """Context manager enforcing SERIALIZABLE isolation for the transaction.

    Commits on success and rolls back on any error, so callers never observe a
    partially applied unit of work.
    """

    bind = session.get_bind()
    if bind is None:
        raise RuntimeError("Session is not bound to an engine")

    if session.in_transaction() and not (session.new or session.dirty or session.deleted):
        # the isolation statement has to open its own transaction
        session.rollback()

    dialect = bind.dialect.name
    if dialect == "sqlite":
        session.execute(text("BEGIN IMMEDIATE"))
    else:
        session.execute(text("SET TRANSACTION ISOLATION LEVEL SERIALIZABLE"))

    try:
        yield
        session.commit()
    except Exception:
        session.rollback()
        raise


def is_serialization_failure(exc: DBAPIError) -> bool:
    """True when the driver reports SQLSTATE 40001 for the failed statement."""

    code = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    return code == SERIALIZATION_FAILURE


def run_serializable(session: Session, work: Callable[[], T], *, attempts: int = SERIALIZABLE_ATTEMPTS) -> T:
    """Run ``work`` in a serializable transaction, retrying serialization failures.

    ``work`` is called again from scratch after each rolled back attempt, so it
    must re-read whatever it depends on. Other errors propagate immediately.
    """

    attempt = 1
    while True:
        try:
            with serializable_transaction(session):
                return work()
        except DBAPIError as exc:
            if not is_serialization_failure(exc):
                raise
            if attempt >= attempts:
                raise TransactionConflictError(
                    f"Transaction still conflicting after {attempts} attempts"
                ) from exc
            LOGGER.warning(
                "serializable transaction conflict, retrying",
                extra={"attempt": attempt, "max_attempts": attempts},
            )
            attempt += 1


__all__ = [
    "SessionLocal",
    "TransactionConflictError",
    "engine",
    "get_session",
    "is_serialization_failure",
    "run_serializable",
    "serializable_transaction",
]
