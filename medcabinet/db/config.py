"""Database configuration for the medcabinet blob store."""
from sqlmodel import create_engine
from sqlalchemy import event
from sqlalchemy.engine import Engine
import logging

from medcabinet.config import DATABASE_URL

logger = logging.getLogger(__name__)


def build_engine(database_url: str = DATABASE_URL) -> Engine:
    """Create the SQLModel engine, with SQLite pragmas for local development."""
    if database_url.startswith("postgresql"):
        logger.info("[DB CONFIG] Using PostgreSQL database")
    else:
        logger.info(f"[DB CONFIG] Using SQLite database: {database_url}")

    # SQLite connections are shared with the event loop thread
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    db_engine = create_engine(database_url, echo=False, connect_args=connect_args)

    if database_url.startswith("sqlite"):
        @event.listens_for(db_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    return db_engine


engine = build_engine()
