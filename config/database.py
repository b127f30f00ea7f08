"""
Storefront - Database Configuration
=====================================
Engine, SessionLocal, Base, get_db dependency, and the atomic() transaction scope.
All models across all modules inherit from this Base.
"""

import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker, declarative_base

from config.settings import (
    DATABASE_URL, DB_ISOLATION_LEVEL, DB_STATEMENT_TIMEOUT_MS, DB_ECHO,
)
from common.exceptions import TransactionConflictError

logger = logging.getLogger("storefront.db")

# SQLSTATE codes PostgreSQL uses for conflicts a caller may safely retry
_RETRYABLE_SQLSTATES = {
    "40001",  # serialization_failure
    "40P01",  # deadlock_detected
    "55P03",  # lock_not_available
    "57014",  # query_canceled (statement_timeout)
}


def build_engine(url: str = DATABASE_URL, **overrides):
    """Create an engine with pool settings suited to the backend."""
    kwargs = {"echo": DB_ECHO, "pool_pre_ping": True}

    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False, "timeout": 15}
    else:
        kwargs.update(
            pool_size=20,
            max_overflow=40,
            pool_timeout=30,
            pool_recycle=1800,  # Refresh connections every 30 minutes
        )
        if DB_STATEMENT_TIMEOUT_MS and url.startswith("postgresql"):
            kwargs["connect_args"] = {"options": f"-c statement_timeout={DB_STATEMENT_TIMEOUT_MS}"}

    if DB_ISOLATION_LEVEL:
        kwargs["isolation_level"] = DB_ISOLATION_LEVEL

    kwargs.update(overrides)
    new_engine = create_engine(url, **kwargs)

    if url.startswith("sqlite"):
        # Foreign keys are off by default in SQLite
        @event.listens_for(new_engine, "connect")
        def _sqlite_pragmas(dbapi_conn, _record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


engine = build_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency: yields a database session, auto-closes after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def is_retryable_conflict(exc: OperationalError) -> bool:
    """True when the store rejected the transaction for concurrency reasons."""
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate in _RETRYABLE_SQLSTATES:
        return True
    return "database is locked" in str(orig or exc).lower()


@contextmanager
def atomic(db: Session):
    """
    Transaction scope: commit on clean exit, roll back on every error path.

    Store-level serialization failures, deadlocks and lock timeouts are
    re-raised as TransactionConflictError so callers can tell them apart from
    business-rule failures.
    """
    try:
        yield db
        db.commit()
    except OperationalError as exc:
        db.rollback()
        if is_retryable_conflict(exc):
            logger.warning("Transaction conflict, rolled back: %s", exc.orig)
            raise TransactionConflictError() from exc
        raise
    except BaseException:
        db.rollback()
        raise
