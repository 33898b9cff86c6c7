from doremi.core.errors import StoreReadError, StoreWriteError
from doremi.features.store.keyed_store import InMemoryKeyedStore


class FailingWritesStore(InMemoryKeyedStore):
    """In-memory store whose writes to the given buckets always fail."""

    def __init__(self, failing_buckets=()):
        super().__init__()
        self.failing_buckets = set(failing_buckets)
        self.write_attempts = []

    def _write_raw(self, bucket: str, payload: str) -> None:
        self.write_attempts.append(bucket)
        if bucket in self.failing_buckets:
            raise StoreWriteError(f"{bucket}: simulated write failure", bucket=bucket)
        super()._write_raw(bucket, payload)


class FlakyReadsStore(FailingWritesStore):
    """In-memory store whose next read of each bucket in `unreadable` fails once."""

    def __init__(self):
        super().__init__()
        self.unreadable = set()

    def _read_raw(self, bucket: str):
        if bucket in self.unreadable:
            self.unreadable.discard(bucket)
            raise StoreReadError(f"{bucket}: simulated read failure", bucket=bucket)
        return super()._read_raw(bucket)
