"""
Notification router - the caller's inbox.
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from groupwork.core.dependencies import Identity, get_current_identity, get_notification_service
from groupwork.schemas.base import ApiResponse
from groupwork.schemas.notification import (
    ClearNotificationsResponse,
    NotificationListResponse,
    NotificationRead,
)
from groupwork.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/my", response_model=NotificationListResponse)
async def list_my_notifications(
    identity: Identity = Depends(get_current_identity),
    service: NotificationService = Depends(get_notification_service),
):
    """Unread first, newest first, capped."""
    notifications = await service.list_for_user(identity.uid)
    return NotificationListResponse(
        count=len(notifications),
        notifications=[NotificationRead.model_validate(n) for n in notifications],
    )


@router.patch("/{notification_id}/read", response_model=ApiResponse)
async def mark_read(
    notification_id: UUID,
    identity: Identity = Depends(get_current_identity),
    service: NotificationService = Depends(get_notification_service),
):
    await service.mark_read(notification_id, identity.uid)
    return ApiResponse(message="Notification marked as read")


@router.delete("/clear", response_model=ClearNotificationsResponse)
async def clear_notifications(
    identity: Identity = Depends(get_current_identity),
    service: NotificationService = Depends(get_notification_service),
):
    deleted = await service.clear_for_user(identity.uid)
    return ClearNotificationsResponse(message="Notifications cleared", deleted_count=deleted)
