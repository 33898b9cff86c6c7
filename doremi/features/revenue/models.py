"""
doremi/features/revenue/models.py
Revenue ledger records and aggregate read models.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RevenueRecord(BaseModel):
    """Views and accrued revenue for one piece of content."""

    model_config = ConfigDict(frozen=True)

    content_id: str = Field(min_length=1)
    title: str
    instructor_id: str
    view_count: int = Field(ge=0)
    accrued_revenue: float = Field(ge=0, description="view_count / 1000 * rate, recomputed on each view")
    created_at: datetime


class TopRecord(BaseModel):
    """The instructor's most viewed content."""

    model_config = ConfigDict(frozen=True)

    content_id: str
    title: str
    views: int = Field(ge=0)
    revenue: float = Field(ge=0)


class InstructorRevenueStats(BaseModel):
    """Earnings dashboard for one instructor. All zeros when there is no data."""

    model_config = ConfigDict(frozen=True)

    instructor_id: str
    total_views: int = Field(default=0, ge=0)
    total_revenue: float = Field(default=0.0, ge=0)
    record_count: int = Field(default=0, ge=0)
    average_views_per_record: float = Field(default=0.0, ge=0)
    top_record: Optional[TopRecord] = None
    monthly_revenue: float = Field(default=0.0, ge=0, description="Revenue of records created in the trailing 30 days")
    monthly_growth: Optional[float] = Field(
        default=None,
        description="Percent change vs the prior 30-day window; None when the prior window is empty",
    )


class PlatformRevenueStats(BaseModel):
    """Ledger-wide totals."""

    model_config = ConfigDict(frozen=True)

    total_views: int = Field(ge=0)
    total_revenue: float = Field(ge=0)
    record_count: int = Field(ge=0)
    unique_instructors: int = Field(ge=0)
    average_views_per_record: float = Field(ge=0)
