"""Typed view over a keyed store bucket: pydantic records in, pydantic records out."""

from typing import Callable, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from doremi.core.errors import StoreCorruptionError
from doremi.features.store.keyed_store import KeyedStore, report_corruption

RecordT = TypeVar("RecordT", bound=BaseModel)


class RecordCollection(Generic[RecordT]):
    """
    A bucket whose items are `model` records.

    A bucket holding an item that does not validate against the model is
    treated like any other corrupt bucket: logged, counted, read as empty.
    """

    def __init__(self, store: KeyedStore, bucket: str, model: Type[RecordT]):
        self.store = store
        self.bucket = bucket
        self.model = model

    def _parse(self, items: List[dict]) -> List[RecordT]:
        try:
            return [self.model.model_validate(item) for item in items]
        except SchemaError as e:
            report_corruption(
                StoreCorruptionError(
                    f"{self.bucket}: {e.error_count()} invalid {self.model.__name__} field(s)",
                    bucket=self.bucket,
                )
            )
            return []

    @staticmethod
    def _dump(records: List[RecordT]) -> List[dict]:
        return [record.model_dump(mode="json") for record in records]

    def all(self) -> List[RecordT]:
        return self._parse(self.store.get(self.bucket))

    def update(self, mutate: Callable[[List[RecordT]], Optional[List[RecordT]]]) -> List[RecordT]:
        """Read-modify-write with records; `mutate` returning None skips the write."""
        result: List[List[RecordT]] = []

        def _apply(items: List[dict]) -> Optional[List[dict]]:
            records = self._parse(items)
            changed = mutate(records)
            if changed is None:
                result.append(records)
                return None
            result.append(list(changed))
            return self._dump(changed)

        self.store.update(self.bucket, _apply)
        return result[0]
