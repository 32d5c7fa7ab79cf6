"""Database engine and session factory."""
from contextlib import contextmanager
from typing import Iterator

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from pushgate.config import settings

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=settings.DATABASE_ECHO,
)

# Store writes commit one statement at a time; rows must stay readable afterwards
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


def get_db() -> Iterator[Session]:
    """Yield a session for one unit of work, rolling back on error."""
    db = SessionLocal()
    try:
        yield db
    except Exception as exc:
        logger.error("Database session error", error=str(exc))
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """``with`` form of :func:`get_db` for scripts."""
    yield from get_db()
