"""
doremi/features/publication/models.py
Publish request and the result types of publish / view.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from doremi.features.library.models import ContentItem
from doremi.features.notifications.models import AdminNotificationRecord, NotificationRecord, StreamName
from doremi.features.revenue.models import RevenueRecord

DEFAULT_DURATION = "15:30"
DEFAULT_THUMBNAIL = "https://images.unsplash.com/photo-1635070041078-e363dbe005cb?w=400&h=200&fit=crop"


class PublishRequest(BaseModel):
    """An instructor's "publish this video" action. Emptiness is checked by the pipeline."""

    id: str
    title: str
    description: str
    instructor_id: str
    instructor_name: str = ""
    ephemeral_reference: Optional[str] = Field(
        default=None, description="Reference as the publisher has it; may be session-scoped (blob:)"
    )
    duration: Optional[str] = None
    thumbnail: Optional[str] = None


class NotificationDelivery(BaseModel):
    """Outcome of one best-effort notification write."""

    model_config = ConfigDict(frozen=True)

    stream: StreamName
    delivered: bool
    notification_id: str
    error: Optional[str] = None


class PublishResult(BaseModel):
    """
    The library write is authoritative: if it failed there is no result at all.
    Notification writes are best-effort and reported per stream in `deliveries`.
    """

    model_config = ConfigDict(frozen=True)

    library_item: ContentItem
    audience_notification: NotificationRecord
    admin_notification: AdminNotificationRecord
    deliveries: List[NotificationDelivery]

    @property
    def fully_delivered(self) -> bool:
        return all(delivery.delivered for delivery in self.deliveries)


class ViewOutcome(BaseModel):
    """Library item and revenue record after one counted view."""

    model_config = ConfigDict(frozen=True)

    item: ContentItem
    revenue: RevenueRecord
