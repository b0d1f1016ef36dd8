"""SQLAlchemy engine, session factory and transaction helper."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Iterator, TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from securohelp.core.config import settings
from securohelp.core.errors import ConcurrencyConflict, PersistenceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.database_url,
    echo=(settings.app_env == "development"),
    pool_pre_ping=True,
    connect_args=_connect_args(settings.database_url),
)

SessionLocal = sessionmaker(bind=engine, class_=Session, expire_on_commit=False)


def enable_sqlite_foreign_keys(target_engine) -> None:
    """SQLite doesn't enforce FKs unless asked to on every connection."""

    @event.listens_for(target_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


if engine.dialect.name == "sqlite":
    enable_sqlite_foreign_keys(engine)


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""

    pass


def get_db() -> Iterator[Session]:
    """FastAPI dependency: yields a scoped DB session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Normalise a stored timestamp; SQLite hands back naive datetimes."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def run_in_transaction(
    db: Session,
    work: Callable[[], T],
    *,
    retries: int = 0,
    retry_on: tuple[type[Exception], ...] = (StaleDataError,),
    retry_if: Callable[[Exception], bool] | None = None,
    label: str = "transaction",
) -> T:
    """
    Run ``work`` and commit, as one unit.

    On any failure the session is rolled back so nothing ``work`` staged
    survives. Exceptions listed in ``retry_on`` re-run ``work`` from scratch
    (it must re-read whatever it depends on) up to ``retries`` times. When
    ``retry_if`` is given, only the ``retry_on`` errors it accepts are
    retried. Remaining store errors surface as ``PersistenceError``; domain
    errors raised by ``work`` propagate unchanged.
    """
    attempt = 0
    while True:
        try:
            result = work()
            db.commit()
            return result
        except retry_on as exc:
            db.rollback()
            if retry_if is not None and not retry_if(exc):
                logger.error("%s failed: %s", label, getattr(exc, "orig", exc))
                if isinstance(exc, SQLAlchemyError):
                    raise PersistenceError() from exc
                raise
            attempt += 1
            if attempt > retries:
                logger.error("%s gave up after %d attempts: %s", label, attempt, exc)
                if isinstance(exc, StaleDataError):
                    raise ConcurrencyConflict() from exc
                raise PersistenceError() from exc
            logger.warning("%s conflicted (attempt %d/%d), retrying: %s",
                           label, attempt, retries + 1, exc)
        except IntegrityError as exc:
            db.rollback()
            logger.error("%s violated a constraint: %s", label, exc.orig)
            raise PersistenceError() from exc
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("%s failed", label)
            raise PersistenceError() from exc
        except Exception:
            db.rollback()
            raise
