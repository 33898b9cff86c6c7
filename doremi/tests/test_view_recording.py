"""View counting keeps the library and the revenue ledger in step."""

import threading
from datetime import datetime, timezone

from doremi.core.metrics import content_views_total
from doremi.features.library.service import LIBRARY_BUCKET
from doremi.features.publication.models import PublishRequest
from doremi.features.revenue.service import REVENUE_BUCKET
from doremi.services import build_services
from doremi.tests.fakes import FailingWritesStore

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def publish(services, content_id="v1", instructor_id="i1"):
    return services.pipeline.publish(
        PublishRequest(
            id=content_id,
            title="Intro",
            description="First lesson",
            instructor_id=instructor_id,
            instructor_name="Ada",
            ephemeral_reference="https://cdn.example.com/v.mp4",
        ),
        now=NOW,
    )


def test_view_increments_library_and_ledger(services):
    publish(services)

    outcome = services.pipeline.record_view("v1", now=NOW)

    assert outcome.item.view_count == 1
    assert outcome.revenue.view_count == 1
    assert outcome.revenue.instructor_id == "i1"
    assert outcome.revenue.title == "Intro"
    assert services.library.get("v1").view_count == 1
    assert content_views_total.value() == 1.0


def test_counts_stay_equal(services):
    publish(services, "v1")
    publish(services, "v2")
    for _ in range(5):
        services.pipeline.record_view("v1", now=NOW)
    for _ in range(2):
        services.pipeline.record_view("v2", now=NOW)

    for content_id, expected in (("v1", 5), ("v2", 2)):
        assert services.library.get(content_id).view_count == expected
        assert services.ledger.get_record(content_id).view_count == expected


def test_unknown_content_is_not_counted(store, services):
    publish(services)
    library_before = store.raw(LIBRARY_BUCKET)

    assert services.pipeline.record_view("missing", now=NOW) is None
    assert store.raw(LIBRARY_BUCKET) == library_before
    assert store.raw(REVENUE_BUCKET) is None
    assert content_views_total.value() == 0.0


def test_ledger_failure_reverts_library_count():
    store = FailingWritesStore()
    services = build_services(store)
    publish(services)
    services.pipeline.record_view("v1", now=NOW)

    store.failing_buckets.add(REVENUE_BUCKET)
    assert services.pipeline.record_view("v1", now=NOW) is None

    assert services.library.get("v1").view_count == 1
    assert services.ledger.get_record("v1").view_count == 1


def test_library_failure_drops_view_without_raising():
    store = FailingWritesStore()
    services = build_services(store)
    publish(services)

    store.failing_buckets.add(LIBRARY_BUCKET)
    assert services.pipeline.record_view("v1", now=NOW) is None
    assert services.ledger.get_record("v1") is None


def test_concurrent_views_are_all_counted(services):
    publish(services)

    def viewer():
        for _ in range(25):
            services.pipeline.record_view("v1", now=NOW)

    threads = [threading.Thread(target=viewer) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert services.library.get("v1").view_count == 100
    assert services.ledger.get_record("v1").view_count == 100
