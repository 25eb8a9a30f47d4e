"""
Per-user notification inbox: listing, marking read, and bulk clearing.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from groupwork.errors import AuthorizationError, NotFoundError, StorageError
from groupwork.models.notification import Notification
from groupwork.repositories.notification_repository import NotificationRepository
from groupwork.utils.time import epoch_ms, utc_now

logger = logging.getLogger(__name__)


def inbox_order(notifications: List[Notification]) -> List[Notification]:
    """Unread first, then newest first within each group."""
    return sorted(notifications, key=lambda n: (bool(n.read), -epoch_ms(n.created_at)))


class NotificationService:
    def __init__(self, db: AsyncSession, list_limit: int = 50, clear_batch_size: int = 450):
        self.db = db
        self.repository = NotificationRepository(db)
        self.list_limit = list_limit
        self.clear_batch_size = clear_batch_size

    async def list_for_user(self, user_id: str) -> List[Notification]:
        notifications = await self.repository.list_for_user(user_id)
        return inbox_order(notifications)[: self.list_limit]

    async def mark_read(self, notification_id: UUID, user_id: str) -> Notification:
        notification = await self.repository.get_by_id(notification_id)
        if not notification:
            raise NotFoundError("Notification not found")
        if notification.user_id != user_id:
            raise AuthorizationError("Not your notification")
        if notification.read:
            return notification

        notification = await self.repository.mark_read(notification, utc_now())
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StorageError("Failed to update notification") from e
        return notification

    async def clear_for_user(self, user_id: str) -> int:
        """Delete the caller's notifications in committed batches; returns the count."""
        deleted = 0
        try:
            ids = await self.repository.list_ids_for_user(user_id)
            for start in range(0, len(ids), self.clear_batch_size):
                deleted += await self.repository.delete_ids(ids[start:start + self.clear_batch_size])
                await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Clearing notifications for %s stopped after %d: %s", user_id, deleted, e)
            raise StorageError("Failed to clear notifications") from e
        logger.info("Cleared %d notifications for %s", deleted, user_id)
        return deleted
