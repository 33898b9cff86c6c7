"""
Database connection management for the SQL-backed keyed store.

This module provides:
- SQLAlchemy engine construction (PostgreSQL or SQLite)
- Connection pooling with sane defaults
- The keyed bucket table used by the SQL-backed store

Engines are owned by their caller; nothing here is module-level state.
"""
from contextlib import contextmanager
from sqlalchemy import create_engine, MetaData, Table, Column, String, DateTime, Text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool, StaticPool
import logging

logger = logging.getLogger(__name__)

# SQLAlchemy metadata for table definitions
metadata = MetaData()

# Connection pooling configuration
POOL_SIZE = 10
MAX_OVERFLOW = 20
POOL_TIMEOUT = 30
POOL_RECYCLE = 3600  # Recycle connections after 1 hour


def build_engine(url: str) -> Engine:
    """Create an engine with pooling suited to the backend.

    In-memory SQLite needs a single shared connection, file SQLite needs
    cross-thread access, everything else gets a QueuePool.
    """
    if url.startswith("sqlite"):
        if url in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(
                url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        return create_engine(url, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=POOL_SIZE,
        max_overflow=MAX_OVERFLOW,
        pool_timeout=POOL_TIMEOUT,
        pool_recycle=POOL_RECYCLE,
        echo=False,  # Set to True for SQL query logging
    )


def create_all_tables(engine: Engine):
    """
    Create all tables defined in metadata.

    This is idempotent - tables that already exist will not be recreated.
    """
    metadata.create_all(bind=engine)


@contextmanager
def transaction(engine: Engine):
    """Yield a connection inside a transaction (commit on success, rollback on error)."""
    with engine.begin() as conn:
        yield conn


def check_connection(engine: Engine) -> bool:
    """
    Check if database connection is available.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        with engine.connect() as conn:
            conn.exec_driver_sql("SELECT 1")
        return True
    except Exception as e:
        logger.warning(f"Database connection check failed: {e}")
        return False


# One row per logical bucket; payload is the JSON array of records
keyed_buckets = Table(
    'keyed_buckets',
    metadata,
    Column('bucket', String(100), primary_key=True),
    Column('payload', Text, nullable=False),
    Column('updated_at', DateTime(timezone=True), nullable=False),
)
