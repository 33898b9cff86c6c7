"""Content library read endpoints (catalog rendering)."""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from doremi.api.deps import get_services
from doremi.services import PublishingServices

router = APIRouter(prefix="/v1/library", tags=["library"])


@router.get("", response_model=Dict[str, Any])
def list_library(services: PublishingServices = Depends(get_services)) -> Dict[str, Any]:
    """All published content, most recent first."""
    items = services.library.list_all()
    return {"success": True, "data": [item.model_dump(mode="json") for item in items]}


@router.get("/stats", response_model=Dict[str, Any])
def library_stats(services: PublishingServices = Depends(get_services)) -> Dict[str, Any]:
    return {"success": True, "data": services.library.stats().model_dump(mode="json")}


@router.get("/instructors/{instructor_id}", response_model=Dict[str, Any])
def list_instructor_content(
    instructor_id: str,
    services: PublishingServices = Depends(get_services),
) -> Dict[str, Any]:
    items = services.library.list_by_instructor(instructor_id)
    return {"success": True, "data": [item.model_dump(mode="json") for item in items]}
