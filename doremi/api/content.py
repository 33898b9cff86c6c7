"""
Content publication endpoints.

- POST   /v1/content/publish            publish a video (library + notifications)
- POST   /v1/content/{content_id}/views count one playback (library + revenue)
- DELETE /v1/content/{content_id}       remove a video and its revenue record
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from doremi.api.deps import get_services
from doremi.features.publication.models import PublishRequest
from doremi.services import PublishingServices

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/content", tags=["content"])


@router.post("/publish", response_model=Dict[str, Any])
def publish_content(
    body: PublishRequest,
    services: PublishingServices = Depends(get_services),
) -> Dict[str, Any]:
    """
    Publish a video.

    The library write is authoritative (a failure is a 500 with
    `store_write_failed`). Notification writes are best-effort: their outcome
    is reported in `data.deliveries` and `data.fully_delivered`.
    """
    result = services.pipeline.publish(body)
    data = result.model_dump(mode="json")
    data["fully_delivered"] = result.fully_delivered
    return {"success": True, "data": data}


@router.post("/{content_id}/views", response_model=Dict[str, Any])
def record_content_view(
    content_id: str,
    services: PublishingServices = Depends(get_services),
) -> Dict[str, Any]:
    """
    Count one view.

    Never fails the caller: unknown content or a failed write answers
    `recorded: false` so playback is not blocked.
    """
    outcome = services.pipeline.record_view(content_id)
    if outcome is None:
        return {"success": True, "data": {"recorded": False, "content_id": content_id}}
    return {
        "success": True,
        "data": {"recorded": True, "content_id": content_id, **outcome.model_dump(mode="json")},
    }


@router.delete("/{content_id}", response_model=Dict[str, Any])
def remove_content(
    content_id: str,
    services: PublishingServices = Depends(get_services),
) -> Dict[str, Any]:
    removed = services.pipeline.remove_content(content_id)
    return {"success": True, "data": {"removed": removed, "content_id": content_id}}
