"""Engine, session factory and transaction scope."""

from collections.abc import Generator, Iterator
from contextlib import contextmanager
import logging

from sqlalchemy import Engine, create_engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from backoffice.core.config import Settings, get_settings
from backoffice.core.exceptions import ConflictError, StoreError

logger = logging.getLogger(__name__)


def build_engine(settings: Settings) -> Engine:
    """Create an engine tuned for the configured backend.

    SQLite (local development and tests) shares one connection across
    threads when in-memory; PostgreSQL gets a pre-pinged, recycled pool.
    """
    if settings.is_sqlite:
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in settings.database_url or settings.database_url.endswith(
            "://"
        ):
            kwargs["poolclass"] = StaticPool
        return create_engine(settings.database_url, echo=settings.sql_echo, **kwargs)

    # pool_pre_ping: Test connections before using (handles stale connections)
    # pool_recycle: Recycle connections after 30 minutes (prevents timeout)
    return create_engine(
        settings.database_url,
        echo=settings.sql_echo,
        poolclass=QueuePool,
        pool_pre_ping=True,
        pool_recycle=1800,
        pool_size=5,
        max_overflow=10,
        connect_args={"connect_timeout": 10},
    )


engine = build_engine(get_settings())

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db() -> Generator[Session, None, None]:
    """Yield a session for the request lifecycle, always closing it."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def transaction(session: Session, action: str = "complete operation") -> Iterator[Session]:
    """Commit on success, roll back on every other exit path.

    SQLAlchemy failures surface as StoreError (a unique-key violation as
    ConflictError); the underlying diagnostics only go to the log.
    """
    try:
        yield session
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.error(f"Integrity error while trying to {action}: {e}", exc_info=True)
        raise ConflictError(f"Failed to {action}: conflicting record exists") from e
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Database error while trying to {action}: {e}", exc_info=True)
        raise StoreError(f"Failed to {action}") from e
    except Exception:
        session.rollback()
        raise
