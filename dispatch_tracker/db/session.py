# File: dispatch_tracker/db/session.py
"""
Database session management for the dispatch tracker.

Usage:
    from dispatch_tracker.db.session import session_scope

    with session_scope() as session:
        orders = OrderDispatchRepository(session).list_orders()
"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from dispatch_tracker.core.config import settings
from dispatch_tracker.db.models import Base

logger = logging.getLogger(__name__)


def create_db_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """
    Create an SQLAlchemy engine for the configured database.

    Args:
        database_url: Optional URL overriding ``settings.DATABASE_URL``
        echo: Optional flag overriding ``settings.DB_ECHO``

    Returns:
        SQLAlchemy engine
    """
    url = database_url or settings.DATABASE_URL
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    logger.debug(f"Creating database engine for {url.split('@')[-1]}")
    return create_engine(
        url,
        echo=settings.DB_ECHO if echo is None else echo,
        connect_args=connect_args,
        pool_pre_ping=True,
    )


engine = create_db_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Optional[Engine] = None) -> None:
    """Create all tables known to the declarative base."""
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables created")


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
