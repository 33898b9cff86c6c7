"""
Composition root for the publishing services.

Every service takes the keyed store as an explicit dependency; nothing is a
module-level singleton. The app (or a worker, or a test) builds one
PublishingServices and owns its lifetime.
"""

from dataclasses import dataclass
from typing import Optional

from doremi.core.config import Settings, settings
from doremi.features.library.service import ContentLibrary
from doremi.features.notifications.service import NotificationFanout
from doremi.features.publication.service import PublicationPipeline
from doremi.features.retention.service import RetentionService
from doremi.features.revenue.service import RevenueLedger
from doremi.features.store.keyed_store import KeyedStore, get_keyed_store


@dataclass
class PublishingServices:
    store: KeyedStore
    library: ContentLibrary
    notifications: NotificationFanout
    ledger: RevenueLedger
    pipeline: PublicationPipeline
    retention: RetentionService


def build_services(store: Optional[KeyedStore] = None, settings_obj: Optional[Settings] = None) -> PublishingServices:
    """Wire every service around one store (the configured one unless given)."""
    cfg = settings_obj or settings
    store = store if store is not None else get_keyed_store(cfg)

    library = ContentLibrary(store, max_entries=cfg.LIBRARY_LIMIT)
    notifications = NotificationFanout(
        store,
        audience_max_entries=cfg.AUDIENCE_NOTIFICATIONS_LIMIT,
        admin_max_entries=cfg.ADMIN_NOTIFICATIONS_LIMIT,
    )
    ledger = RevenueLedger(store, rate=cfg.MONETIZATION_RATE)
    pipeline = PublicationPipeline(library, notifications, ledger)
    retention = RetentionService(
        library,
        notifications,
        ledger,
        notification_retention_days=cfg.NOTIFICATION_RETENTION_DAYS,
        library_keep=cfg.LIBRARY_RETENTION_KEEP,
        revenue_retention_days=cfg.REVENUE_RETENTION_DAYS,
    )
    return PublishingServices(
        store=store,
        library=library,
        notifications=notifications,
        ledger=ledger,
        pipeline=pipeline,
        retention=retention,
    )
