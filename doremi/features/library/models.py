"""
doremi/features/library/models.py
Content library records and read models.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ContentItem(BaseModel):
    """A published video as consumers see it."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Stable, caller-supplied content id")
    title: str
    description: str
    instructor_id: str
    instructor_name: str
    playable_reference: str = Field(description="Durable URI consumers can play")
    view_count: int = Field(default=0, ge=0)
    published_at: datetime
    duration: Optional[str] = Field(default=None, description="Display string, e.g. 15:30")
    thumbnail: Optional[str] = None


class LibraryStats(BaseModel):
    """Aggregate view of the whole library."""

    model_config = ConfigDict(frozen=True)

    total_items: int = Field(ge=0)
    total_views: int = Field(ge=0)
    unique_instructors: int = Field(ge=0)
    average_views: float = Field(ge=0)
