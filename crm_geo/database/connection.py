import logging
from contextlib import contextmanager
from typing import Callable, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from crm_geo.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()

SessionFactory = Callable[[], Session]


def create_db_engine(database_url: str) -> Engine:
    """Create an engine for SQLite or PostgreSQL."""
    if "sqlite" in database_url:
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(database_url, pool_pre_ping=True)


def create_session_factory(database_url: Optional[str] = None) -> Optional[SessionFactory]:
    """
    Build a session factory for the persistent store.

    Returns None when no database is configured, in which case callers
    fall back to memory-only behaviour.
    """
    url = database_url if database_url is not None else settings.database_url
    if not url:
        return None
    engine = create_db_engine(url)
    logger.info(f"Persistent store configured: {engine.dialect.name}")
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db_session(session_factory: SessionFactory):
    """Context manager around a session: commit on success, rollback on error."""
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
