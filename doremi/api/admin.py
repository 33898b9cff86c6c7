"""Operational endpoints for administrators."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from doremi.api.deps import get_services
from doremi.services import PublishingServices

router = APIRouter(prefix="/v1/admin", tags=["admin"])


@router.post("/retention/cleanup", response_model=Dict[str, Any])
def run_retention(
    include_revenue: bool = Query(False, description="Also drop revenue records past their retention window"),
    services: PublishingServices = Depends(get_services),
) -> Dict[str, Any]:
    report = services.retention.cleanup()
    data = report.model_dump(mode="json")
    if include_revenue:
        data["revenue_records_pruned"] = services.retention.cleanup_revenue()
    return {"success": True, "data": data}
