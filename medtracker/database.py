"""
Database connection and session management.

Medications and their logs live in one SQLAlchemy database, SQLite by
default. SQLite connections get foreign keys switched on so log rows are
removed with their medication even outside the ORM cascade.
"""
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from .config import settings

# Set up logging
logger = logging.getLogger(__name__)

def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")

def create_db_engine(url: str) -> Engine:
    """
    Create an engine for ``url``.

    Args:
        url: SQLAlchemy connection string

    Returns:
        Engine: Engine with SQLite foreign key enforcement where relevant
    """
    if not _is_sqlite(url):
        return create_engine(url)

    # FastAPI runs sync endpoints and dependencies in a threadpool
    sqlite_engine = create_engine(url, connect_args={"check_same_thread": False})

    @event.listens_for(sqlite_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return sqlite_engine

engine = create_db_engine(settings.database_url)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

Base = declarative_base()

def init_db() -> None:
    """Create any missing tables for zero-setup local runs"""
    Base.metadata.create_all(bind=engine)
    logger.info(f"Database ready ({engine.url.get_backend_name()})")

def get_db():
    """
    Database dependency - Yields a session for one request.

    Yields:
        SQLAlchemy Session: Database session, closed afterwards
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
