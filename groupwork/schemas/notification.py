"""
Notification Pydantic schemas.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from groupwork.schemas.base import ApiResponse


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: str
    type: str
    task_id: Optional[UUID] = None
    group_id: Optional[UUID] = None
    message: str = ""
    actor_id: Optional[str] = None
    read: bool = False
    created_at: Optional[datetime] = None
    read_at: Optional[datetime] = None


class NotificationListResponse(ApiResponse):
    count: int
    notifications: List[NotificationRead]


class ClearNotificationsResponse(ApiResponse):
    deleted_count: int
