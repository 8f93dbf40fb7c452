"""
Database connection and session management.

This module provides SQLAlchemy engine configuration for PostgreSQL in
production and SQLite for local development and tests.
"""

import os
from pathlib import Path
from typing import Generator

from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from backend.src.utils.logging_config import get_logger


# Look for .env in backend directory (parent of src)
env_path = Path(__file__).parent.parent.parent / '.env'
if env_path.exists():
    load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.environ.get(
    "SCHEDULER_DB_URL",
    "sqlite:///./scheduler.db"
)

logger = get_logger("db")


if DATABASE_URL.startswith("sqlite"):
    # SQLite doesn't support pool_size, max_overflow, or pool_recycle
    from sqlalchemy.pool import StaticPool
    engine = create_engine(
        DATABASE_URL,
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
        echo=False,
        future=True
    )
else:
    engine = create_engine(
        DATABASE_URL,
        pool_size=20,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=3600,
        echo=False,
        future=True
    )


SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    future=True
)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for FastAPI routes to get database session.

    Yields:
        Session: SQLAlchemy database session

    Usage:
        @router.get("/events")
        async def list_events(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """
    Enable foreign key enforcement on SQLite connections.

    Without it, ON DELETE CASCADE on event_profiles and
    event_audit_entries is ignored by SQLite.
    """
    if type(dbapi_conn).__module__.startswith("sqlite3"):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def init_db():
    """
    Initialize database tables.

    This should only be called during initial setup or testing.
    For production, use Alembic migrations instead.
    """
    from backend.src.models import Base
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables initialized", extra={"url": engine.url.render_as_string(hide_password=True)})


def dispose_engine():
    """
    Dispose of the engine and close all connections.

    Useful for cleanup in CLI tools and tests.
    """
    engine.dispose()
