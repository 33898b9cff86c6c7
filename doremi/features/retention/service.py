"""
doremi/features/retention/service.py

Periodic compaction on top of the write-time caps:
- notifications (both streams) older than 30 days are dropped
- the library is cut down to its 50 most recent entries
- revenue records older than a year are dropped (separate pass)

Every pass is idempotent: running it twice gives the same result as once.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from doremi.core.clock import ensure_utc
from doremi.core.metrics import retention_pruned_total
from doremi.features.library.service import ContentLibrary
from doremi.features.notifications.service import NotificationFanout
from doremi.features.revenue.service import RevenueLedger

logger = logging.getLogger(__name__)

NOTIFICATION_RETENTION_DAYS = 30
LIBRARY_RETENTION_KEEP = 50
REVENUE_RETENTION_DAYS = 365


class RetentionReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    audience_notifications_pruned: int = Field(ge=0)
    admin_notifications_pruned: int = Field(ge=0)
    library_entries_pruned: int = Field(ge=0)
    ran_at: datetime


class RetentionService:
    def __init__(
        self,
        library: ContentLibrary,
        notifications: NotificationFanout,
        ledger: RevenueLedger,
        *,
        notification_retention_days: int = NOTIFICATION_RETENTION_DAYS,
        library_keep: int = LIBRARY_RETENTION_KEEP,
        revenue_retention_days: int = REVENUE_RETENTION_DAYS,
    ):
        self.library = library
        self.notifications = notifications
        self.ledger = ledger
        self.notification_retention = timedelta(days=notification_retention_days)
        self.library_keep = library_keep
        self.revenue_retention = timedelta(days=revenue_retention_days)

    def cleanup(self, now: Optional[datetime] = None) -> RetentionReport:
        """Prune notifications by age and the library by count."""
        now = ensure_utc(now)
        cutoff = now - self.notification_retention

        audience = self.notifications.audience.prune_older_than(cutoff)
        admin = self.notifications.admin.prune_older_than(cutoff)
        library = self.library.truncate(self.library_keep)

        retention_pruned_total.inc(labels={"collection": "audience_notifications"}, amount=audience)
        retention_pruned_total.inc(labels={"collection": "admin_notifications"}, amount=admin)
        retention_pruned_total.inc(labels={"collection": "library"}, amount=library)
        logger.info(
            f"[retention] pruned audience={audience} admin={admin} library={library}",
        )
        return RetentionReport(
            audience_notifications_pruned=audience,
            admin_notifications_pruned=admin,
            library_entries_pruned=library,
            ran_at=now,
        )

    def cleanup_revenue(self, now: Optional[datetime] = None) -> int:
        """Drop revenue records older than the revenue retention window."""
        now = ensure_utc(now)
        pruned = self.ledger.prune_older_than(now - self.revenue_retention)
        retention_pruned_total.inc(labels={"collection": "revenue"}, amount=pruned)
        logger.info(f"[retention] pruned revenue={pruned}")
        return pruned
