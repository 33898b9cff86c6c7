"""
doremi/features/store/keyed_store.py

Durable process-local key -> document store.

A bucket name maps to a JSON array. Every read returns a fresh copy, every
write replaces the whole collection (last write wins). Reads never raise on
malformed data: the bucket is reported as corrupt and treated as empty.
A read that fails outright (I/O or database error) raises StoreReadError
instead, so `update` never overwrites data it could not see.

Read-modify-write cycles (`update`) hold a per-bucket lock, so writers in one
process are serialized per bucket. Separate processes sharing a file store can
still clobber each other's writes; only one writing process is supported.
"""

import json
import logging
import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from doremi.core.config import settings
from doremi.core.errors import StoreCorruptionError, StoreReadError, StoreWriteError
from doremi.core.metrics import store_corruption_total

logger = logging.getLogger(__name__)

_BUCKET_RE = re.compile(r"^[A-Za-z0-9_.-]+$")

Mutator = Callable[[List[Any]], Optional[List[Any]]]


def _check_bucket(bucket: str) -> str:
    if not bucket or not _BUCKET_RE.match(bucket):
        raise ValueError(f"Invalid bucket name: {bucket!r}")
    return bucket


def report_corruption(exc: StoreCorruptionError) -> None:
    """Log and count a recovered corruption; the caller continues with an empty bucket."""
    store_corruption_total.inc(labels={"bucket": exc.bucket or ""})
    logger.warning(
        f"[store] bucket treated as empty: {exc.message}",
        extra={"bucket": exc.bucket, "error_code": exc.code},
    )


def _decode(bucket: str, raw: str) -> List[Any]:
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise StoreCorruptionError(f"{bucket}: invalid JSON ({e})", bucket=bucket)
    if not isinstance(data, list):
        raise StoreCorruptionError(
            f"{bucket}: expected a JSON array, got {type(data).__name__}", bucket=bucket
        )
    return data


def _encode(bucket: str, items: List[Any]) -> str:
    try:
        return json.dumps(list(items), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise StoreWriteError(f"{bucket}: payload is not JSON-serializable ({e})", bucket=bucket)


class KeyedStore:
    """
    Base class for keyed stores.

    Subclasses implement `_read_raw` (return the stored text or None) and
    `_write_raw` (persist the text, raising StoreWriteError on failure).
    `_read_raw` raises StoreReadError when the bucket cannot be read and
    StoreCorruptionError when what it read is malformed.
    """

    def __init__(self):
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, bucket: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(bucket)
            if lock is None:
                lock = threading.RLock()
                self._locks[bucket] = lock
            return lock

    def _read_raw(self, bucket: str) -> Optional[str]:
        raise NotImplementedError

    def _write_raw(self, bucket: str, payload: str) -> None:
        raise NotImplementedError

    def _load(self, bucket: str) -> List[Any]:
        try:
            raw = self._read_raw(bucket)
            if raw is None:
                return []
            return _decode(bucket, raw)
        except StoreCorruptionError as exc:
            report_corruption(exc)
            return []

    def raw(self, bucket: str) -> Optional[str]:
        """Return the stored text for a bucket exactly as persisted (None if absent)."""
        _check_bucket(bucket)
        with self._lock_for(bucket):
            return self._read_raw(bucket)

    def get(self, bucket: str) -> List[Any]:
        """Return the bucket's collection, or [] when absent or malformed.

        Raises:
            StoreReadError: if the bucket could not be read
        """
        _check_bucket(bucket)
        with self._lock_for(bucket):
            return self._load(bucket)

    def put(self, bucket: str, items: List[Any]) -> None:
        """Replace the whole collection."""
        _check_bucket(bucket)
        payload = _encode(bucket, items)
        with self._lock_for(bucket):
            self._write_raw(bucket, payload)

    def update(self, bucket: str, mutate: Mutator) -> List[Any]:
        """
        Read-modify-write a bucket under its lock.

        `mutate` receives the current collection and returns the new one, or
        None to leave the bucket untouched (no write happens).

        Returns:
            The collection as it stands after the call.

        Raises:
            StoreReadError: if the bucket could not be read (nothing is written)
            StoreWriteError: if the new collection could not be persisted
        """
        _check_bucket(bucket)
        with self._lock_for(bucket):
            current = self._load(bucket)
            result = mutate(current)
            if result is None:
                return current
            self._write_raw(bucket, _encode(bucket, result))
            return list(result)

    def ping(self) -> bool:
        """Readiness probe."""
        return True


class InMemoryKeyedStore(KeyedStore):
    """
    Keyed store held in a dict of serialized payloads.

    Payloads are kept as JSON text so reads never share objects with callers
    and corrupt data can be seeded in tests.
    """

    def __init__(self):
        super().__init__()
        self._payloads: Dict[str, str] = {}

    def _read_raw(self, bucket: str) -> Optional[str]:
        return self._payloads.get(bucket)

    def _write_raw(self, bucket: str, payload: str) -> None:
        self._payloads[bucket] = payload

    def set_raw(self, bucket: str, payload: str) -> None:
        """Store text verbatim. FOR TESTING ONLY."""
        with self._lock_for(_check_bucket(bucket)):
            self._payloads[bucket] = payload


class JsonFileKeyedStore(KeyedStore):
    """Keyed store keeping one `<bucket>.json` file per bucket under a directory."""

    def __init__(self, directory: str):
        super().__init__()
        self.directory = Path(directory)

    def _path(self, bucket: str) -> Path:
        return self.directory / f"{bucket}.json"

    def _read_raw(self, bucket: str) -> Optional[str]:
        path = self._path(bucket)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            raise StoreCorruptionError(f"{bucket}: file {path} is not UTF-8 ({e})", bucket=bucket)
        except OSError as e:
            raise StoreReadError(f"{bucket}: could not read {path} ({e})", bucket=bucket)

    def _write_raw(self, bucket: str, payload: str) -> None:
        path = self._path(bucket)
        tmp_name = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{bucket}.", suffix=".tmp", dir=self.directory)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreWriteError(f"{bucket}: could not write {path} ({e})", bucket=bucket)

    def ping(self) -> bool:
        return not self.directory.exists() or os.access(self.directory, os.W_OK)


def get_keyed_store(settings_obj=None) -> KeyedStore:
    """
    Build the configured keyed store.

    - STORE_BACKEND=sql uses DATABASE_URL through SQLAlchemy, falling back
      to the file store if the database is unreachable
    - STORE_BACKEND=file (default) writes JSON files under STORE_DIR
    - STORE_BACKEND=memory keeps everything in process (tests only)
    """
    cfg = settings_obj or settings
    backend = (getattr(cfg, "STORE_BACKEND", "file") or "file").lower()

    if backend == "memory":
        return InMemoryKeyedStore()

    if backend == "sql":
        from doremi.core.database import build_engine, check_connection, create_all_tables
        from doremi.features.store.keyed_store_sql import SqlKeyedStore

        url = getattr(cfg, "DATABASE_URL", None)
        if url:
            engine = build_engine(url)
            if check_connection(engine):
                create_all_tables(engine)
                return SqlKeyedStore(engine)
            logger.warning("[store] database unavailable, falling back to file store")
        else:
            logger.warning("[store] STORE_BACKEND=sql without DATABASE_URL, falling back to file store")

    return JsonFileKeyedStore(getattr(cfg, "STORE_DIR", ".doremi_store"))
