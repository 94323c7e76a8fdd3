"""Initialize database tables."""
from sqlmodel import SQLModel
from sqlalchemy.engine import Engine
import logging

from medcabinet.models.blob import BlobEntry  # noqa: F401  registers the table
from medcabinet.db.config import engine as default_engine

logger = logging.getLogger(__name__)


def init_db(db_engine: Engine = default_engine):
    """Create all tables in the database."""
    logger.info("[DB INIT] Creating all tables...")
    SQLModel.metadata.create_all(db_engine)
    logger.info("[DB INIT] Tables created successfully.")


if __name__ == "__main__":
    init_db()
    print("Database tables created successfully.")
