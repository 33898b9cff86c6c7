"""
doremi/features/revenue/service.py

Per-view revenue ledger, one record per content id.

Accrued revenue is always recomputed from the view count
(view_count / 1000 * rate), never incremented, so it cannot drift.

Deterministic: same records + same now => identical stats.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from doremi.core.clock import ensure_utc
from doremi.features.revenue.models import (
    InstructorRevenueStats,
    PlatformRevenueStats,
    RevenueRecord,
    TopRecord,
)
from doremi.features.store.keyed_store import KeyedStore
from doremi.features.store.records import RecordCollection

logger = logging.getLogger(__name__)

REVENUE_BUCKET = "doremi_instructor_revenue"

# Currency units per 1000 views
MONETIZATION_RATE = 2.5

MONTH_WINDOW = timedelta(days=30)


class RevenueLedger:
    """Tracks views and accrued revenue per content id."""

    def __init__(self, store: KeyedStore, rate: float = MONETIZATION_RATE, bucket: str = REVENUE_BUCKET):
        if rate < 0:
            raise ValueError("rate must be >= 0")
        self._rate = rate
        self._records = RecordCollection(store, bucket, RevenueRecord)

    @property
    def monetization_rate(self) -> float:
        return self._rate

    def calculate_revenue(self, views: int) -> float:
        return (views / 1000) * self._rate

    def record_view(
        self,
        content_id: str,
        instructor_id: str,
        title: str,
        now: Optional[datetime] = None,
    ) -> RevenueRecord:
        """
        Count one view for `content_id`.

        Creates the record on first view (view_count=1), increments it after
        that. Repeated calls are never deduplicated.

        Raises:
            StoreWriteError: if the ledger could not be persisted
        """
        created_at = ensure_utc(now)
        updated: List[RevenueRecord] = []

        def _apply(records: List[RevenueRecord]) -> List[RevenueRecord]:
            for index, record in enumerate(records):
                if record.content_id == content_id:
                    views = record.view_count + 1
                    changed = record.model_copy(
                        update={"view_count": views, "accrued_revenue": self.calculate_revenue(views)}
                    )
                    updated.append(changed)
                    return records[:index] + [changed] + records[index + 1:]
            fresh = RevenueRecord(
                content_id=content_id,
                title=title,
                instructor_id=instructor_id,
                view_count=1,
                accrued_revenue=self.calculate_revenue(1),
                created_at=created_at,
            )
            updated.append(fresh)
            return records + [fresh]

        self._records.update(_apply)
        return updated[0]

    def get_record(self, content_id: str) -> Optional[RevenueRecord]:
        for record in self._records.all():
            if record.content_id == content_id:
                return record
        return None

    def records_for_instructor(self, instructor_id: str) -> List[RevenueRecord]:
        return [record for record in self._records.all() if record.instructor_id == instructor_id]

    def stats_for_instructor(self, instructor_id: str, now: Optional[datetime] = None) -> InstructorRevenueStats:
        """
        Aggregate an instructor's records.

        - top_record: highest view count; on a tie the record stored first wins
          (storage order, no meaning beyond being stable)
        - monthly_revenue: records created after now - 30 days
        - monthly_growth: percent change of that window against the 30 days
          before it, None when the earlier window earned nothing

        An instructor without records gets zero-valued stats.
        """
        now = ensure_utc(now)
        records = self.records_for_instructor(instructor_id)
        if not records:
            return InstructorRevenueStats(instructor_id=instructor_id)

        total_views = sum(record.view_count for record in records)
        total_revenue = sum(record.accrued_revenue for record in records)

        top = records[0]
        for record in records[1:]:
            if record.view_count > top.view_count:
                top = record

        current_start = now - MONTH_WINDOW
        previous_start = current_start - MONTH_WINDOW
        monthly_revenue = sum(r.accrued_revenue for r in records if r.created_at > current_start)
        previous_revenue = sum(
            r.accrued_revenue for r in records if previous_start < r.created_at <= current_start
        )
        monthly_growth = None
        if previous_revenue > 0:
            monthly_growth = (monthly_revenue - previous_revenue) / previous_revenue * 100

        return InstructorRevenueStats(
            instructor_id=instructor_id,
            total_views=total_views,
            total_revenue=total_revenue,
            record_count=len(records),
            average_views_per_record=total_views / len(records),
            top_record=TopRecord(
                content_id=top.content_id,
                title=top.title,
                views=top.view_count,
                revenue=top.accrued_revenue,
            ),
            monthly_revenue=monthly_revenue,
            monthly_growth=monthly_growth,
        )

    def platform_stats(self) -> PlatformRevenueStats:
        records = self._records.all()
        total_views = sum(record.view_count for record in records)
        return PlatformRevenueStats(
            total_views=total_views,
            total_revenue=sum(record.accrued_revenue for record in records),
            record_count=len(records),
            unique_instructors=len({record.instructor_id for record in records}),
            average_views_per_record=total_views / len(records) if records else 0.0,
        )

    def remove_record(self, content_id: str) -> bool:
        removed: List[bool] = []

        def _drop(records: List[RevenueRecord]) -> Optional[List[RevenueRecord]]:
            kept = [record for record in records if record.content_id != content_id]
            if len(kept) == len(records):
                return None
            removed.append(True)
            return kept

        self._records.update(_drop)
        return bool(removed)

    def prune_older_than(self, cutoff: datetime) -> int:
        """Drop records created at or before `cutoff`. Returns how many were dropped."""
        dropped: List[int] = []

        def _prune(records: List[RevenueRecord]) -> Optional[List[RevenueRecord]]:
            kept = [record for record in records if record.created_at > cutoff]
            if len(kept) == len(records):
                return None
            dropped.append(len(records) - len(kept))
            return kept

        self._records.update(_prune)
        return dropped[0] if dropped else 0
