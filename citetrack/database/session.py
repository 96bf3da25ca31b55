"""
Database Session Management

Handles connection pooling, session lifecycle, and database initialization.
PostgreSQL in production, SQLite for local development.
"""

import os
import logging
from contextlib import contextmanager
from typing import Callable, Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool

from citetrack.utils.config import get_settings

from .models import Base

logger = logging.getLogger(__name__)

# =============================================================================
# DATABASE URL CONFIGURATION
# =============================================================================

def get_database_url() -> str:
    """
    Get database URL from settings (environment or .env).

    Priority:
    1. DATABASE_URL
    2. SQLite fallback for local development
    """
    url = get_settings().DATABASE_URL

    if url:
        # Hosted PostgreSQL URLs often use postgres:// but SQLAlchemy needs postgresql://
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        logger.info("Using database from DATABASE_URL")
        return url

    sqlite_path = os.getenv("SQLITE_PATH", "citetrack_dev.db")
    logger.warning(f"No DATABASE_URL found, using SQLite: {sqlite_path}")
    return f"sqlite:///{sqlite_path}"


# =============================================================================
# ENGINE CONFIGURATION
# =============================================================================

def create_db_engine(url: Optional[str] = None):
    """
    Create database engine with appropriate settings.

    PostgreSQL: Connection pooling
    SQLite: Simpler settings, foreign key support
    """
    url = url or get_database_url()
    is_postgres = url.startswith("postgresql")

    if is_postgres:
        engine = create_engine(
            url,
            poolclass=QueuePool,
            pool_size=5,                # Base connections
            max_overflow=10,            # Additional connections under load
            pool_timeout=30,            # Wait for connection
            pool_recycle=1800,          # Recycle connections after 30 min
            pool_pre_ping=True,         # Verify connections before use
            echo=os.getenv("SQL_DEBUG", "false").lower() == "true",
        )
        logger.info("Created PostgreSQL engine with connection pooling")
    else:
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=os.getenv("SQL_DEBUG", "false").lower() == "true",
        )

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        logger.info("Created SQLite engine")

    return engine


# Global engine (lazy initialization)
_engine = None


def get_engine():
    """Get or create the database engine."""
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


# =============================================================================
# SESSION MANAGEMENT
# =============================================================================

# Session factory (lazy initialization)
_SessionLocal = None


def get_session_factory() -> Callable[[], Session]:
    """Get or create session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            bind=get_engine(),
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,  # Don't expire objects after commit
        )
    return _SessionLocal


@contextmanager
def get_db_context(
    session_factory: Optional[Callable[[], Session]] = None,
) -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Commits on success, rolls back on error.

    Usage:
        with get_db_context() as db:
            db.query(Item).all()
    """
    SessionLocal = session_factory or get_session_factory()
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# =============================================================================
# DATABASE INITIALIZATION
# =============================================================================

def init_db(engine=None, drop_all: bool = False) -> None:
    """
    Create all tables.

    Args:
        engine: Engine to use (defaults to the global engine)
        drop_all: If True, drop all tables first (USE WITH CAUTION!)
    """
    engine = engine or get_engine()

    if drop_all:
        logger.warning("Dropping all database tables!")
        Base.metadata.drop_all(bind=engine)

    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")


def check_db_connection(engine=None) -> bool:
    """Check that the database answers a trivial query."""
    engine = engine or get_engine()
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection verified")
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
