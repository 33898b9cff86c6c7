"""
doremi/features/notifications/service.py

Notification fan-out: two independent, bounded streams (audience, admin)
plus the builders for the records the publication pipeline writes into them.

Mutations by id (mark read, delete) on an unknown id are no-ops that return
False; they never raise.
"""

import logging
import uuid
from datetime import datetime
from typing import Generic, List, Optional, Type, TypeVar

from doremi.features.library.models import ContentItem
from doremi.features.notifications.models import AdminNotificationRecord, NotificationRecord
from doremi.features.store.keyed_store import KeyedStore
from doremi.features.store.records import RecordCollection

logger = logging.getLogger(__name__)

AUDIENCE_BUCKET = "doremi_video_notifications"
ADMIN_BUCKET = "doremi_admin_notifications"
AUDIENCE_MAX_ENTRIES = 50
ADMIN_MAX_ENTRIES = 20

NotificationT = TypeVar("NotificationT", bound=NotificationRecord)


class NotificationStream(Generic[NotificationT]):
    """Bounded, newest-first list of notifications stored in one bucket."""

    def __init__(self, name: str, store: KeyedStore, bucket: str, model: Type[NotificationT], max_entries: int):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.name = name
        self.max_entries = max_entries
        self._records = RecordCollection(store, bucket, model)

    def append(self, record: NotificationT) -> NotificationT:
        """Insert at the head, dropping the oldest entries past the cap.

        Raises:
            StoreWriteError: if the stream could not be persisted
        """
        self._records.update(lambda items: [record, *items][: self.max_entries])
        return record

    def list_all(self) -> List[NotificationT]:
        return self._records.all()

    def list_unread(self) -> List[NotificationT]:
        return [record for record in self._records.all() if not record.is_read]

    def get(self, notification_id: str) -> Optional[NotificationT]:
        for record in self._records.all():
            if record.id == notification_id:
                return record
        return None

    def mark_read(self, notification_id: str) -> bool:
        found: List[bool] = []

        def _mark(items: List[NotificationT]) -> Optional[List[NotificationT]]:
            for index, record in enumerate(items):
                if record.id == notification_id:
                    found.append(True)
                    if record.is_read:
                        return None
                    return items[:index] + [record.model_copy(update={"is_read": True})] + items[index + 1:]
            return None

        self._records.update(_mark)
        return bool(found)

    def mark_all_read(self) -> int:
        """Mark every notification read. Returns how many changed."""
        changed: List[int] = []

        def _mark(items: List[NotificationT]) -> Optional[List[NotificationT]]:
            unread = sum(1 for record in items if not record.is_read)
            changed.append(unread)
            if not unread:
                return None
            return [record.model_copy(update={"is_read": True}) for record in items]

        self._records.update(_mark)
        return changed[0]

    def delete(self, notification_id: str) -> bool:
        removed: List[bool] = []

        def _drop(items: List[NotificationT]) -> Optional[List[NotificationT]]:
            kept = [record for record in items if record.id != notification_id]
            if len(kept) == len(items):
                return None
            removed.append(True)
            return kept

        self._records.update(_drop)
        return bool(removed)

    def prune_older_than(self, cutoff: datetime) -> int:
        """Drop notifications created at or before `cutoff`. Returns how many were dropped."""
        dropped: List[int] = []

        def _prune(items: List[NotificationT]) -> Optional[List[NotificationT]]:
            kept = [record for record in items if record.created_at > cutoff]
            if len(kept) == len(items):
                return None
            dropped.append(len(items) - len(kept))
            return kept

        self._records.update(_prune)
        return dropped[0] if dropped else 0


def build_audience_notification(item: ContentItem, now: datetime) -> NotificationRecord:
    return NotificationRecord(
        id=f"content_{uuid.uuid4().hex}",
        kind="content_published",
        title="New video published",
        message=f'{item.instructor_name} published a new video: "{item.title}"',
        instructor_name=item.instructor_name,
        content_title=item.title,
        content_id=item.id,
        created_at=now,
        is_read=False,
    )


def build_admin_notification(item: ContentItem, now: datetime) -> AdminNotificationRecord:
    return AdminNotificationRecord(
        id=f"admin_content_{uuid.uuid4().hex}",
        kind="content_published",
        title="New video published by an instructor",
        message=f'Instructor {item.instructor_name} published a new video: "{item.title}"',
        instructor_id=item.instructor_id,
        instructor_name=item.instructor_name,
        content_title=item.title,
        content_id=item.id,
        created_at=now,
        is_read=False,
        priority="medium",
    )


class NotificationFanout:
    """The two notification streams a publication fans out to."""

    def __init__(
        self,
        store: KeyedStore,
        audience_max_entries: int = AUDIENCE_MAX_ENTRIES,
        admin_max_entries: int = ADMIN_MAX_ENTRIES,
    ):
        self.audience: NotificationStream[NotificationRecord] = NotificationStream(
            "audience", store, AUDIENCE_BUCKET, NotificationRecord, audience_max_entries
        )
        self.admin: NotificationStream[AdminNotificationRecord] = NotificationStream(
            "admin", store, ADMIN_BUCKET, AdminNotificationRecord, admin_max_entries
        )

    def stream(self, name: str) -> NotificationStream:
        if name == "audience":
            return self.audience
        if name == "admin":
            return self.admin
        raise ValueError(f"Unknown notification stream: {name}")

    def streams(self) -> List[NotificationStream]:
        return [self.audience, self.admin]
