"""
Database session, engine, and the unit of work used by every mutating operation.
"""
import logging
from contextlib import contextmanager
from typing import Callable, Iterator

from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from slotswap.config import settings
from slotswap.core.errors import ConflictError

logger = logging.getLogger(__name__)

# Postgres SQLSTATEs meaning "lost a race": serialization failure, deadlock,
# lock_timeout, statement/lock wait cancelled.
CONFLICT_PGCODES = frozenset({"40001", "40P01", "55P03", "57014"})


def _make_engine(url: str):
    if url.startswith("sqlite"):
        # Local runs and tests. Worker threads share the file, not connections.
        sqlite_engine = create_engine(url, connect_args={"check_same_thread": False, "timeout": 15})

        @event.listens_for(sqlite_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return sqlite_engine
    return create_engine(
        url,
        pool_size=8,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=300,
        pool_timeout=30,
    )


engine = _make_engine(settings.database_url)
# Results are returned after the session closes, so keep loaded state on commit.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def is_conflict(exc: Exception) -> bool:
    """True when a store error means a concurrent transaction won the race."""
    if isinstance(exc, StaleDataError):
        return True
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) in CONFLICT_PGCODES:
        return True
    if isinstance(exc, IntegrityError):
        # Partial unique indexes on pending requests
        return "ux_swap_requests_pending" in str(orig)
    if isinstance(exc, OperationalError):
        return "database is locked" in str(orig)
    return False


def _apply_lock_timeout(db: Session) -> None:
    if settings.db_lock_timeout_ms <= 0 or db.get_bind().dialect.name != "postgresql":
        return
    # SET does not take bind parameters; value is an int from settings.
    db.execute(text(f"SET LOCAL lock_timeout = {int(settings.db_lock_timeout_ms)}"))


@contextmanager
def unit_of_work(session_factory: Callable[[], Session] = SessionLocal) -> Iterator[Session]:
    """
    One atomic transactional scope: every lock-read, validation and write made
    through the yielded session commits together or not at all.

    Lost races reported by the store become ConflictError; anything else is
    re-raised unchanged after rollback.
    """
    db = session_factory()
    try:
        _apply_lock_timeout(db)
        yield db
        db.commit()
    except Exception as e:
        db.rollback()
        if is_conflict(e):
            logger.info("Transaction lost a race, rolled back: %s", e)
            raise ConflictError() from e
        raise
    finally:
        db.close()
