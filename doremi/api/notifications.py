"""
Notification inbox endpoints, one set per stream (`audience` or `admin`).

Mutations on an unknown notification id are no-ops answered with
`updated: false`, not errors.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from doremi.api.deps import get_services
from doremi.core.errors import NotFoundError
from doremi.features.notifications.service import NotificationStream
from doremi.services import PublishingServices

router = APIRouter(prefix="/v1/notifications", tags=["notifications"])


def _stream(services: PublishingServices, stream: str) -> NotificationStream:
    try:
        return services.notifications.stream(stream)
    except ValueError:
        raise NotFoundError(f"Unknown notification stream: {stream}")


@router.get("/{stream}", response_model=Dict[str, Any])
def list_notifications(
    stream: str,
    unread: bool = Query(False, description="Only unread notifications"),
    services: PublishingServices = Depends(get_services),
) -> Dict[str, Any]:
    target = _stream(services, stream)
    records = target.list_unread() if unread else target.list_all()
    return {
        "success": True,
        "data": [record.model_dump(mode="json") for record in records],
        "unread_count": len(records) if unread else sum(1 for r in records if not r.is_read),
    }


@router.post("/{stream}/read-all", response_model=Dict[str, Any])
def mark_all_read(stream: str, services: PublishingServices = Depends(get_services)) -> Dict[str, Any]:
    changed = _stream(services, stream).mark_all_read()
    return {"success": True, "data": {"updated": changed}}


@router.post("/{stream}/{notification_id}/read", response_model=Dict[str, Any])
def mark_read(
    stream: str,
    notification_id: str,
    services: PublishingServices = Depends(get_services),
) -> Dict[str, Any]:
    found = _stream(services, stream).mark_read(notification_id)
    return {"success": True, "data": {"updated": found, "id": notification_id}}


@router.delete("/{stream}/{notification_id}", response_model=Dict[str, Any])
def delete_notification(
    stream: str,
    notification_id: str,
    services: PublishingServices = Depends(get_services),
) -> Dict[str, Any]:
    removed = _stream(services, stream).delete(notification_id)
    return {"success": True, "data": {"updated": removed, "id": notification_id}}
