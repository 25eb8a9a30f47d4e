"""
Repository for Notification database operations.
"""

from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from groupwork.models.notification import Notification


class NotificationRepository:
    """Repository for Notification operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        user_id: str,
        type: str,
        message: str = "",
        task_id: Optional[UUID] = None,
        group_id: Optional[UUID] = None,
        actor_id: Optional[str] = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=type,
            message=message,
            task_id=task_id,
            group_id=group_id,
            actor_id=actor_id,
            read=False,
        )
        self.db.add(notification)
        await self.db.flush()
        return notification

    async def get_by_id(self, notification_id: UUID) -> Optional[Notification]:
        return await self.db.get(Notification, notification_id)

    async def list_for_user(self, user_id: str) -> List[Notification]:
        """All notifications of a recipient, unordered (callers sort in memory)."""
        result = await self.db.execute(select(Notification).where(Notification.user_id == user_id))
        return list(result.scalars().all())

    async def list_ids_for_user(self, user_id: str) -> List[UUID]:
        result = await self.db.execute(select(Notification.id).where(Notification.user_id == user_id))
        return list(result.scalars().all())

    async def mark_read(self, notification: Notification, read_at: datetime) -> Notification:
        notification.read = True
        notification.read_at = read_at
        await self.db.flush()
        return notification

    async def delete_ids(self, ids: Sequence[UUID]) -> int:
        if not ids:
            return 0
        result = await self.db.execute(delete(Notification).where(Notification.id.in_(list(ids))))
        await self.db.flush()
        return result.rowcount or 0
