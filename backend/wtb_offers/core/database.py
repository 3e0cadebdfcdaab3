"""
Database utilities and connection management.

WHAT: SQLAlchemy setup for the SQL record store
WHY: Run the bridge without Airtable (local development, self-hosting)
HOW: SQLAlchemy sync engine, WAL mode on SQLite, session context manager
"""

from sqlalchemy import create_engine, text, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from contextlib import contextmanager
from pathlib import Path

from .config import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Base for models
Base = declarative_base()


def create_db_engine(url: str, **kwargs) -> Engine:
    """
    Create an engine, preparing SQLite files and pragmas.

    Args:
        url: SQLAlchemy database URL
        **kwargs: Extra create_engine arguments (e.g. poolclass for tests)
    """
    is_sqlite = url.startswith("sqlite")
    if is_sqlite:
        # Sessions are used from FastAPI's threadpool
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        if url.startswith("sqlite:///") and ":memory:" not in url:
            Path(url.replace("sqlite:///", "")).parent.mkdir(parents=True, exist_ok=True)

    db_engine = create_engine(url, echo=settings.DEBUG, future=True, **kwargs)

    if is_sqlite:
        @event.listens_for(db_engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            """Enable WAL mode and FK constraints."""
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return db_engine


engine = create_db_engine(settings.DATABASE_URL)

# Session factory
SessionLocal = sessionmaker(
    bind=engine,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False
)


@contextmanager
def get_db(session_factory=None):
    """
    Context manager for database session.

    Usage:
        with get_db() as db:
            # use db session
            pass

    Yields:
        Session: SQLAlchemy session
    """
    session = (session_factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def ping_database(db_engine: Engine | None = None) -> dict:
    """
    Check database connectivity.

    Returns:
        Dict with status and info
    """
    db_engine = db_engine or engine
    try:
        with db_engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        return {"available": True, "url": db_engine.url.render_as_string(hide_password=True), "error": None}
    except Exception as e:
        logger.error(f"Database ping failed: {e}")
        return {"available": False, "url": db_engine.url.render_as_string(hide_password=True), "error": str(e)}


def init_db(db_engine: Engine | None = None):
    """Create all tables."""
    # Import models so they register on Base.metadata
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=db_engine or engine)
    logger.info("Database initialized")


def close_db():
    """Close database connections."""
    engine.dispose()
    logger.info("Database connections closed")
