import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import get_settings
from .exceptions import ConflictError, InfrastructureError

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(database_url: str, **overrides) -> Engine:
    """
    Create an engine with a bounded connection pool.

    SQLite URLs skip the pool sizing arguments, which its pool does not accept.
    """
    settings = get_settings()
    kwargs = {"echo": settings.db_echo, "future": True}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_pre_ping=True,
        )
    kwargs.update(overrides)
    return create_engine(database_url, **kwargs)


engine = build_engine(get_settings().database_url)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def get_db() -> Iterator[Session]:
    """Provide one session per request and always hand the connection back."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session, conflict_detail: Optional[str] = None) -> Iterator[Session]:
    """
    Run a unit of work atomically.

    Commits when the block exits cleanly and rolls back on any exception,
    so partial writes are never observable.

    Args:
        db: The session to commit or roll back
        conflict_detail: Message used when a uniqueness constraint fires

    Raises:
        ConflictError: A constraint rejected the write
        InfrastructureError: Any other database failure
    """
    try:
        yield db
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity error, transaction rolled back: {e.orig}")
        raise ConflictError(conflict_detail or "The change conflicts with existing data") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Database error, transaction rolled back", exc_info=True)
        raise InfrastructureError("Database operation failed") from e
    except Exception:
        db.rollback()
        raise


def init_db(bind: Engine = None) -> None:
    """Create all tables registered on the metadata."""
    from .. import models  # noqa: F401  registers the mappers

    Base.metadata.create_all(bind=bind or engine)
