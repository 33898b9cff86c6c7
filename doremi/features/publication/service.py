"""
doremi/features/publication/service.py

Publication pipeline: the single entry point for "publish content" and
"view content".

publish() steps, in order:
1. validate the request (no side effects on failure)
2. resolve a durable playable reference
3. add the item to the library (authoritative, errors propagate)
4. append the audience notification (best-effort)
5. append the admin notification (best-effort)

Re-publishing an id leaves the library unchanged but appends new
notifications each time; callers retrying publish() get duplicates in both
streams.
"""

import logging
import threading
from datetime import datetime
from typing import Optional, Sequence

from doremi.core.clock import ensure_utc
from doremi.core.errors import StoreError, ValidationError
from doremi.core.logging import log_event
from doremi.core.metrics import content_published_total, content_views_total, notification_delivery_failures_total
from doremi.features.library.models import ContentItem
from doremi.features.library.service import ContentLibrary
from doremi.features.notifications.service import (
    NotificationFanout,
    NotificationStream,
    build_admin_notification,
    build_audience_notification,
)
from doremi.features.publication.models import (
    DEFAULT_DURATION,
    DEFAULT_THUMBNAIL,
    NotificationDelivery,
    PublishRequest,
    PublishResult,
    ViewOutcome,
)
from doremi.features.publication.references import REFERENCE_POOL, is_ephemeral, resolve_playable_reference
from doremi.features.revenue.service import RevenueLedger

logger = logging.getLogger(__name__)

DEFAULT_INSTRUCTOR_NAME = "Doremi instructor"


def validate_publish_request(request: PublishRequest) -> None:
    missing = [
        field
        for field in ("id", "title", "description", "instructor_id")
        if not (getattr(request, field) or "").strip()
    ]
    if missing:
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}")


class PublicationPipeline:
    """Coordinates library, notification streams and revenue ledger. Holds no state of its own."""

    def __init__(
        self,
        library: ContentLibrary,
        notifications: NotificationFanout,
        ledger: RevenueLedger,
        reference_pool: Sequence[str] = REFERENCE_POOL,
    ):
        if not reference_pool:
            raise ValueError("reference_pool must not be empty")
        self.library = library
        self.notifications = notifications
        self.ledger = ledger
        self.reference_pool = tuple(reference_pool)
        self._view_lock = threading.Lock()

    def publish(self, request: PublishRequest, now: Optional[datetime] = None) -> PublishResult:
        """
        Publish a video.

        Raises:
            ValidationError: id, title, description or instructor_id is empty
            StoreReadError: the library could not be read (nothing was written)
            StoreWriteError: the library write failed (nothing was notified)
        """
        validate_publish_request(request)
        now = ensure_utc(now)

        reference = resolve_playable_reference(request.id, request.ephemeral_reference, self.reference_pool)
        if is_ephemeral(request.ephemeral_reference):
            logger.info(
                f"[publish] substituted non-redistributable reference for {request.id}",
                extra={"content_id": request.id},
            )

        item = self.library.add(
            ContentItem(
                id=request.id,
                title=request.title,
                description=request.description,
                instructor_id=request.instructor_id,
                instructor_name=request.instructor_name.strip() or DEFAULT_INSTRUCTOR_NAME,
                playable_reference=reference,
                view_count=0,
                published_at=now,
                duration=request.duration or DEFAULT_DURATION,
                thumbnail=request.thumbnail or DEFAULT_THUMBNAIL,
            )
        )
        content_published_total.inc()

        audience_notification = build_audience_notification(item, now)
        admin_notification = build_admin_notification(item, now)
        deliveries = [
            self._deliver(self.notifications.audience, audience_notification),
            self._deliver(self.notifications.admin, admin_notification),
        ]

        log_event(
            "info",
            "content.published",
            instructor_id=item.instructor_id,
            content_id=item.id,
            event_type="content_published",
            extra={"notifications_delivered": sum(d.delivered for d in deliveries)},
        )
        return PublishResult(
            library_item=item,
            audience_notification=audience_notification,
            admin_notification=admin_notification,
            deliveries=deliveries,
        )

    def _deliver(self, stream: NotificationStream, record) -> NotificationDelivery:
        try:
            stream.append(record)
        except StoreError as e:
            notification_delivery_failures_total.inc(labels={"stream": stream.name})
            log_event(
                "warning",
                f"notification.delivery_failed: {e.message}",
                content_id=record.content_id,
                error_code=e.code,
                extra={"stream": stream.name},
            )
            return NotificationDelivery(
                stream=stream.name, delivered=False, notification_id=record.id, error=e.message
            )
        return NotificationDelivery(stream=stream.name, delivered=True, notification_id=record.id)

    def record_view(self, content_id: str, now: Optional[datetime] = None) -> Optional[ViewOutcome]:
        """
        Count one view of `content_id` in the library and in the revenue ledger.

        Both counters move together: if the ledger write fails the library
        increment is taken back. Returns None when the content does not exist
        or the view could not be recorded; it never raises on store failures
        so playback is not blocked.
        """
        with self._view_lock:
            try:
                item = self.library.increment_views(content_id)
            except StoreError as e:
                logger.warning(f"[view] dropped view for {content_id}: {e.message}", extra={"content_id": content_id})
                return None
            if item is None:
                return None

            try:
                revenue = self.ledger.record_view(item.id, item.instructor_id, item.title, now=now)
            except StoreError as e:
                logger.warning(
                    f"[view] revenue update failed for {content_id}, reverting library count: {e.message}",
                    extra={"content_id": content_id},
                )
                try:
                    self.library.decrement_views(content_id)
                except StoreError:
                    logger.error(
                        f"[view] could not revert library count for {content_id}",
                        extra={"content_id": content_id},
                    )
                return None

        content_views_total.inc()
        return ViewOutcome(item=item, revenue=revenue)

    def remove_content(self, content_id: str) -> bool:
        """Remove a library entry and its revenue record. Returns True if either existed."""
        removed_item = self.library.remove(content_id)
        removed_revenue = self.ledger.remove_record(content_id)
        return removed_item or removed_revenue