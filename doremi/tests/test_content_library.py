from datetime import datetime, timedelta, timezone

import pytest

from doremi.core.errors import StoreWriteError
from doremi.features.library.models import ContentItem
from doremi.features.library.service import LIBRARY_BUCKET, ContentLibrary
from doremi.tests.fakes import FailingWritesStore

BASE = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_item(index: int, instructor_id: str = "i1", views: int = 0) -> ContentItem:
    return ContentItem(
        id=f"v{index}",
        title=f"Lesson {index}",
        description="Solfege basics",
        instructor_id=instructor_id,
        instructor_name="Ada",
        playable_reference="https://cdn.example.com/v.mp4",
        view_count=views,
        published_at=BASE + timedelta(minutes=index),
    )


def test_add_puts_newest_first(store):
    library = ContentLibrary(store)
    library.add(make_item(1))
    library.add(make_item(2))
    assert [item.id for item in library.list_all()] == ["v2", "v1"]


def test_cap_keeps_most_recent_entries(store):
    library = ContentLibrary(store)
    for i in range(150):
        library.add(make_item(i))

    items = library.list_all()
    assert len(items) == 100
    assert items[0].id == "v149"
    assert items[-1].id == "v50"


def test_custom_cap(store):
    library = ContentLibrary(store, max_entries=3)
    for i in range(5):
        library.add(make_item(i))
    assert [item.id for item in library.list_all()] == ["v4", "v3", "v2"]


def test_invalid_cap_rejected(store):
    with pytest.raises(ValueError):
        ContentLibrary(store, max_entries=0)


def test_adding_existing_id_keeps_stored_entry(store):
    library = ContentLibrary(store)
    library.add(make_item(1))
    library.increment_views("v1")

    returned = library.add(make_item(1))

    assert returned.view_count == 1
    assert len(library.list_all()) == 1
    assert library.get("v1").view_count == 1


def test_increment_views(store):
    library = ContentLibrary(store)
    library.add(make_item(1))
    library.add(make_item(2))

    updated = library.increment_views("v1")

    assert updated.view_count == 1
    assert library.get("v1").view_count == 1
    assert library.get("v2").view_count == 0
    # position unchanged
    assert [item.id for item in library.list_all()] == ["v2", "v1"]


def test_increment_unknown_id_writes_nothing(store):
    library = ContentLibrary(store)
    library.add(make_item(1))
    before = store.raw(LIBRARY_BUCKET)

    assert library.increment_views("missing") is None
    assert store.raw(LIBRARY_BUCKET) == before


def test_decrement_never_goes_below_zero(store):
    library = ContentLibrary(store)
    library.add(make_item(1))
    assert library.decrement_views("v1").view_count == 0


def test_list_by_instructor(store):
    library = ContentLibrary(store)
    library.add(make_item(1, instructor_id="i1"))
    library.add(make_item(2, instructor_id="i2"))
    library.add(make_item(3, instructor_id="i1"))

    assert [item.id for item in library.list_by_instructor("i1")] == ["v3", "v1"]
    assert library.list_by_instructor("nobody") == []


def test_reads_go_back_to_store(store):
    writer = ContentLibrary(store)
    reader = ContentLibrary(store)
    writer.add(make_item(1))
    assert [item.id for item in reader.list_all()] == ["v1"]


def test_remove(store):
    library = ContentLibrary(store)
    library.add(make_item(1))
    assert library.remove("v1") is True
    assert library.remove("v1") is False
    assert library.list_all() == []


def test_truncate(store):
    library = ContentLibrary(store)
    for i in range(10):
        library.add(make_item(i))

    assert library.truncate(4) == 6
    assert [item.id for item in library.list_all()] == ["v9", "v8", "v7", "v6"]
    assert library.truncate(4) == 0


def test_stats(store):
    library = ContentLibrary(store)
    library.add(make_item(1, instructor_id="i1", views=10))
    library.add(make_item(2, instructor_id="i2", views=20))
    library.add(make_item(3, instructor_id="i1", views=0))

    stats = library.stats()
    assert stats.total_items == 3
    assert stats.total_views == 30
    assert stats.unique_instructors == 2
    assert stats.average_views == 10.0


def test_stats_empty_library(store):
    stats = ContentLibrary(store).stats()
    assert stats.total_items == 0
    assert stats.average_views == 0.0


def test_add_failure_propagates():
    library = ContentLibrary(FailingWritesStore([LIBRARY_BUCKET]))
    with pytest.raises(StoreWriteError):
        library.add(make_item(1))
    assert library.list_all() == []
