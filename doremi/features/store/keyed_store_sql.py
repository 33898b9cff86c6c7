"""
doremi/features/store/keyed_store_sql.py

SQL-backed keyed store (PostgreSQL or SQLite via SQLAlchemy Core).
Maintains exact same contract as the in-memory and file stores: one row per
bucket holding the JSON array as text.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from doremi.core.database import check_connection, keyed_buckets, transaction
from doremi.core.errors import StoreReadError, StoreWriteError
from doremi.features.store.keyed_store import KeyedStore


class SqlKeyedStore(KeyedStore):
    """Keyed store persisted in the `keyed_buckets` table."""

    def __init__(self, engine: Engine):
        super().__init__()
        self.engine = engine

    def _read_raw(self, bucket: str) -> Optional[str]:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(
                    select(keyed_buckets.c.payload).where(keyed_buckets.c.bucket == bucket)
                ).first()
        except SQLAlchemyError as e:
            raise StoreReadError(f"{bucket}: database read failed ({e.__class__.__name__})", bucket=bucket)
        return row[0] if row else None

    def _write_raw(self, bucket: str, payload: str) -> None:
        now = datetime.now(timezone.utc)
        try:
            with transaction(self.engine) as conn:
                result = conn.execute(
                    update(keyed_buckets)
                    .where(keyed_buckets.c.bucket == bucket)
                    .values(payload=payload, updated_at=now)
                )
                if not result.rowcount:
                    conn.execute(
                        insert(keyed_buckets).values(bucket=bucket, payload=payload, updated_at=now)
                    )
        except SQLAlchemyError as e:
            raise StoreWriteError(f"{bucket}: database write failed ({e.__class__.__name__})", bucket=bucket)

    def ping(self) -> bool:
        return check_connection(self.engine)
