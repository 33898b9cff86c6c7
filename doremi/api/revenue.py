"""
Earnings endpoints backed by the revenue ledger.

Read-only: views are counted through `POST /v1/content/{content_id}/views`,
which moves the library and ledger counts together. Amounts are returned raw
and pre-formatted (`display`) for dashboards.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from doremi.api.deps import get_services
from doremi.core.config import settings
from doremi.features.revenue.formatting import format_count, format_currency
from doremi.services import PublishingServices

router = APIRouter(prefix="/v1/revenue", tags=["revenue"])


@router.get("/instructors/{instructor_id}/stats", response_model=Dict[str, Any])
def instructor_stats(
    instructor_id: str,
    services: PublishingServices = Depends(get_services),
) -> Dict[str, Any]:
    """
    Earnings dashboard for one instructor.

    An instructor with no views gets zero-valued stats (200), never a 404.
    `monthly_growth` is null when there is nothing to compare against.
    """
    stats = services.ledger.stats_for_instructor(instructor_id)
    return {
        "success": True,
        "data": stats.model_dump(mode="json"),
        "display": {
            "total_views": format_count(stats.total_views),
            "total_revenue": format_currency(stats.total_revenue, settings.CURRENCY),
            "monthly_revenue": format_currency(stats.monthly_revenue, settings.CURRENCY),
            "monetization_rate": format_currency(services.ledger.monetization_rate, settings.CURRENCY),
        },
    }


@router.get("/instructors/{instructor_id}/records", response_model=Dict[str, Any])
def instructor_records(
    instructor_id: str,
    services: PublishingServices = Depends(get_services),
) -> Dict[str, Any]:
    records = services.ledger.records_for_instructor(instructor_id)
    return {"success": True, "data": [record.model_dump(mode="json") for record in records]}


@router.get("/platform", response_model=Dict[str, Any])
def platform_stats(services: PublishingServices = Depends(get_services)) -> Dict[str, Any]:
    return {"success": True, "data": services.ledger.platform_stats().model_dump(mode="json")}

