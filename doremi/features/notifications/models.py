"""
doremi/features/notifications/models.py
Notification records for the audience and admin streams.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

NotificationKind = Literal["content_published"]
Priority = Literal["low", "medium", "high"]
StreamName = Literal["audience", "admin"]


class NotificationRecord(BaseModel):
    """Audience-facing notification."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    kind: NotificationKind = "content_published"
    title: str
    message: str
    instructor_name: str
    content_title: str
    content_id: str
    created_at: datetime
    is_read: bool = False


class AdminNotificationRecord(NotificationRecord):
    """Administrator-facing notification, carries the instructor identity and a priority."""

    instructor_id: str
    priority: Priority = "medium"
