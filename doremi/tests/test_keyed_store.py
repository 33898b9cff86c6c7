"""Keyed store contract: memory, JSON file and SQL backends."""

import json
import threading
from types import SimpleNamespace

import pytest

from doremi.core.database import build_engine, create_all_tables
from doremi.core.errors import StoreWriteError
from doremi.core.metrics import store_corruption_total
from doremi.features.library.models import ContentItem
from doremi.features.store.keyed_store import (
    InMemoryKeyedStore,
    JsonFileKeyedStore,
    get_keyed_store,
)
from doremi.features.store.keyed_store_sql import SqlKeyedStore
from doremi.features.store.records import RecordCollection


@pytest.fixture
def sql_store():
    engine = build_engine("sqlite://")
    create_all_tables(engine)
    return SqlKeyedStore(engine)


@pytest.fixture(params=["memory", "file", "sql"])
def any_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryKeyedStore()
    if request.param == "file":
        return JsonFileKeyedStore(str(tmp_path / "store"))
    return request.getfixturevalue("sql_store")


def test_absent_bucket_reads_empty(any_store):
    assert any_store.get("nothing_here") == []
    assert any_store.raw("nothing_here") is None


def test_put_then_get_returns_collection(any_store):
    any_store.put("things", [{"id": "a"}, {"id": "b"}])
    assert any_store.get("things") == [{"id": "a"}, {"id": "b"}]


def test_put_replaces_whole_collection(any_store):
    any_store.put("things", [{"id": "a"}, {"id": "b"}])
    any_store.put("things", [{"id": "c"}])
    assert any_store.get("things") == [{"id": "c"}]


def test_reads_are_copies(any_store):
    any_store.put("things", [{"id": "a"}])
    items = any_store.get("things")
    items.append({"id": "mutated"})
    items[0]["id"] = "changed"
    assert any_store.get("things") == [{"id": "a"}]


def test_update_applies_mutation(any_store):
    any_store.put("counter", [{"n": 1}])
    result = any_store.update("counter", lambda items: [{"n": items[0]["n"] + 1}])
    assert result == [{"n": 2}]
    assert any_store.get("counter") == [{"n": 2}]


def test_update_returning_none_writes_nothing(any_store):
    any_store.put("things", [{"id": "a"}])
    before = any_store.raw("things")
    result = any_store.update("things", lambda items: None)
    assert result == [{"id": "a"}]
    assert any_store.raw("things") == before


def test_update_returning_none_on_absent_bucket_does_not_create_it(any_store):
    any_store.update("ghost", lambda items: None)
    assert any_store.raw("ghost") is None


def test_invalid_bucket_name_rejected(any_store):
    with pytest.raises(ValueError):
        any_store.get("../etc/passwd")
    with pytest.raises(ValueError):
        any_store.put("", [])


def test_unserializable_payload_raises_write_error(any_store):
    with pytest.raises(StoreWriteError):
        any_store.put("things", [object()])


def test_ping_ok(any_store):
    assert any_store.ping() is True


def test_malformed_json_reads_empty_and_is_counted():
    store = InMemoryKeyedStore()
    store.set_raw("broken", "{not json")
    assert store.get("broken") == []
    assert store_corruption_total.value(labels={"bucket": "broken"}) == 1.0


def test_non_array_payload_reads_empty():
    store = InMemoryKeyedStore()
    store.set_raw("broken", json.dumps({"id": "a"}))
    assert store.get("broken") == []
    assert store_corruption_total.value(labels={"bucket": "broken"}) == 1.0


def test_update_on_corrupt_bucket_starts_from_empty():
    store = InMemoryKeyedStore()
    store.set_raw("broken", "[[[")
    store.update("broken", lambda items: items + [{"id": "a"}])
    assert store.get("broken") == [{"id": "a"}]


def test_file_store_writes_one_file_per_bucket(tmp_path):
    store = JsonFileKeyedStore(str(tmp_path))
    store.put("doremi_video_library", [{"id": "v1"}])
    path = tmp_path / "doremi_video_library.json"
    assert path.exists()
    assert json.loads(path.read_text(encoding="utf-8")) == [{"id": "v1"}]
    # no temp files left behind
    assert [p.name for p in tmp_path.iterdir()] == ["doremi_video_library.json"]


def test_file_store_survives_new_instance(tmp_path):
    JsonFileKeyedStore(str(tmp_path)).put("things", [{"id": "a"}])
    assert JsonFileKeyedStore(str(tmp_path)).get("things") == [{"id": "a"}]


def test_file_store_corrupt_file_reads_empty(tmp_path):
    (tmp_path / "things.json").write_text("not json at all", encoding="utf-8")
    store = JsonFileKeyedStore(str(tmp_path))
    assert store.get("things") == []
    assert store_corruption_total.value(labels={"bucket": "things"}) == 1.0


def test_file_store_write_failure_raises(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory", encoding="utf-8")
    store = JsonFileKeyedStore(str(blocker))
    with pytest.raises(StoreWriteError) as exc_info:
        store.put("things", [{"id": "a"}])
    assert exc_info.value.bucket == "things"
    assert exc_info.value.code == "store_write_failed"


def test_sql_store_upserts_single_row(sql_store):
    sql_store.put("things", [{"id": "a"}])
    sql_store.put("things", [{"id": "b"}])
    with sql_store.engine.connect() as conn:
        count = conn.exec_driver_sql("SELECT COUNT(*) FROM keyed_buckets").scalar()
    assert count == 1
    assert sql_store.get("things") == [{"id": "b"}]


def test_concurrent_updates_are_not_lost():
    store = InMemoryKeyedStore()
    store.put("counter", [{"n": 0}])

    def worker():
        for _ in range(50):
            store.update("counter", lambda items: [{"n": items[0]["n"] + 1}])

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.get("counter") == [{"n": 400}]


def test_record_collection_invalid_record_reads_empty(store):
    store.put("doremi_video_library", [{"id": "v1", "title": "missing everything else"}])
    records = RecordCollection(store, "doremi_video_library", ContentItem)
    assert records.all() == []
    assert store_corruption_total.value(labels={"bucket": "doremi_video_library"}) == 1.0


def test_get_keyed_store_memory():
    assert isinstance(get_keyed_store(SimpleNamespace(STORE_BACKEND="memory")), InMemoryKeyedStore)


def test_get_keyed_store_file(tmp_path):
    store = get_keyed_store(SimpleNamespace(STORE_BACKEND="file", STORE_DIR=str(tmp_path)))
    assert isinstance(store, JsonFileKeyedStore)
    assert store.directory == tmp_path


def test_get_keyed_store_sql():
    store = get_keyed_store(SimpleNamespace(STORE_BACKEND="sql", DATABASE_URL="sqlite://"))
    assert isinstance(store, SqlKeyedStore)
    store.put("things", [{"id": "a"}])
    assert store.get("things") == [{"id": "a"}]


def test_get_keyed_store_sql_without_url_falls_back_to_file(tmp_path):
    store = get_keyed_store(SimpleNamespace(STORE_BACKEND="sql", DATABASE_URL=None, STORE_DIR=str(tmp_path)))
    assert isinstance(store, JsonFileKeyedStore)
