"""Database engine, session factory and request-scoped session dependency."""

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.config import settings
from app.exceptions import StoreUnavailable, Timeout

logger = logging.getLogger(__name__)

# Postgres SQLSTATE for a statement cancelled by statement_timeout
QUERY_CANCELED = "57014"

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for the duration of one request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def apply_statement_timeout(db: Session, timeout_ms: int) -> None:
    """Bound every statement in the current transaction to ``timeout_ms``.

    Only Postgres supports a server-side statement timeout; other dialects
    (SQLite in tests) run unbounded.
    """
    if timeout_ms <= 0 or db.get_bind().dialect.name != "postgresql":
        return
    db.execute(text(f"SET LOCAL statement_timeout = {int(timeout_ms)}"))


@contextmanager
def store_errors(operation: str):
    """Translate SQLAlchemy failures into Timeout / StoreUnavailable."""
    try:
        yield
    except DBAPIError as e:
        if getattr(e.orig, "pgcode", None) == QUERY_CANCELED:
            logger.error(f"{operation} timed out: {e.orig}")
            raise Timeout(f"{operation} timed out") from e
        logger.error(f"{operation} failed: {e}")
        raise StoreUnavailable(f"{operation} failed: store unavailable") from e
    except SQLAlchemyError as e:
        logger.error(f"{operation} failed: {e}")
        raise StoreUnavailable(f"{operation} failed: store unavailable") from e
