# backend/portfolio_tracker/database.py
"""
Engine, session factory and the request-scoped session dependency.

SQLite (the test default) runs on a single StaticPool connection so an
in-memory database survives between sessions; foreign keys are switched on
per connection so transaction rows cascade with their portfolio.

PostgreSQL runs on a QueuePool sized from the DB_POOL_* settings.
"""

import logging
from collections.abc import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from .config import settings

logger = logging.getLogger(__name__)

POOL_CHECKOUT_TIMEOUT_SECONDS = 30


def enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _build_engine() -> Engine:
    if settings.is_sqlite:
        logger.info(f"Using SQLite at {settings.database_url}")
        sqlite_engine = create_engine(
            settings.database_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=settings.debug,
        )
        event.listen(sqlite_engine, "connect", enable_sqlite_foreign_keys)
        return sqlite_engine

    pool_options = {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_pool_max_overflow,
        "pool_recycle": settings.db_pool_recycle,
        "pool_pre_ping": settings.db_pool_pre_ping,
        "pool_timeout": POOL_CHECKOUT_TIMEOUT_SECONDS,
    }
    logger.info(f"Using PostgreSQL with QueuePool {pool_options}")
    return create_engine(
        settings.database_url,
        poolclass=QueuePool,
        echo=settings.debug,
        **pool_options,
    )


engine = _build_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=True)


def get_db() -> Generator[Session, None, None]:
    """Yield one session per request and always close it afterwards."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def check_database_health() -> dict:
    """
    Run a trivial query against the configured database.

    Returns:
        dict: ``{"status": "healthy", "database": <dialect>}`` or
        ``{"status": "unhealthy", "error": <message>}``
    """
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health probe failed: {e}")
        return {"status": "unhealthy", "error": str(e)}

    return {"status": "healthy", "database": engine.dialect.name}
