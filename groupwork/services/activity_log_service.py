"""
Activity log (audit trail) service.

`append` is the best-effort path used alongside other mutations; `log`,
`list_by_group` and `clear_group` are primary operations whose storage errors
surface to the caller.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from groupwork.errors import StorageError
from groupwork.models.activity_log import ActivityLog
from groupwork.models.enums import ActivityAction
from groupwork.repositories.activity_log_repository import ActivityLogRepository
from groupwork.schemas.activity import ActivityRead, user_ref
from groupwork.services.user_directory import UserDirectory
from groupwork.utils.time import epoch_ms

logger = logging.getLogger(__name__)


def sort_newest_first(entries: Iterable[ActivityLog]) -> List[ActivityLog]:
    """Newest first; entries without a timestamp sort last."""
    return sorted(entries, key=lambda e: epoch_ms(e.timestamp), reverse=True)


def referenced_user_ids(entries: Iterable[ActivityLog]) -> set:
    ids = set()
    for entry in entries:
        if entry.user_id:
            ids.add(entry.user_id)
        meta = entry.meta or {}
        for key in ("assigneeId", "previousAssigneeId"):
            ref = user_ref(meta.get(key))
            if ref:
                ids.add(ref)
    return ids


async def enrich_activities(entries: List[ActivityLog], directory: UserDirectory) -> List[ActivityRead]:
    """Attach actor / assignee names; unresolved ids simply get a null name."""
    names = await directory.display_names(referenced_user_ids(entries))
    return [ActivityRead.from_entry(entry, names) for entry in entries]


class ActivityLogService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clear_batch_size: int = 450,
    ) -> None:
        if clear_batch_size < 1:
            raise ValueError("clear_batch_size must be positive")
        self.session_factory = session_factory
        self.clear_batch_size = clear_batch_size

    async def append(
        self,
        group_id: Optional[UUID],
        user_id: Optional[str],
        action: ActivityAction,
        details: str = "",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Best-effort write; returns False (and logs) instead of raising."""
        if not group_id or not user_id or not action:
            return False
        try:
            async with self.session_factory() as session:
                entry = await ActivityLogRepository(session).create(
                    group_id=group_id,
                    user_id=user_id,
                    action=ActivityAction(action).value,
                    details=details,
                    metadata=metadata,
                )
                await session.commit()
            logger.debug("Activity %s written id=%s group=%s", action, entry.id, group_id)
            return True
        except Exception as e:
            logger.warning("Activity %s for group %s failed: %s", action, group_id, e)
            return False

    async def log(
        self,
        group_id: UUID,
        user_id: str,
        action: ActivityAction,
        details: str = "",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ActivityLog:
        """Client-originated entry; this is the request's primary mutation."""
        try:
            async with self.session_factory() as session:
                entry = await ActivityLogRepository(session).create(
                    group_id=group_id,
                    user_id=user_id,
                    action=ActivityAction(action).value,
                    details=details,
                    metadata=metadata,
                )
                await session.commit()
                return entry
        except SQLAlchemyError as e:
            raise StorageError("Failed to write activity") from e

    async def list_by_group(self, group_id: UUID, limit: int) -> List[ActivityLog]:
        """Up to `limit` entries in store order (no ordering guarantee)."""
        try:
            async with self.session_factory() as session:
                return await ActivityLogRepository(session).list_by_group(group_id, limit)
        except SQLAlchemyError as e:
            raise StorageError("Failed to load activities") from e

    async def clear_group(self, group_id: UUID) -> int:
        """
        Delete every entry of a group in sequential batches.

        Each batch holds at most `clear_batch_size` deletes and is committed
        before the next one starts, so an interrupted clear keeps the batches
        already committed.
        """
        deleted = 0
        try:
            async with self.session_factory() as session:
                repo = ActivityLogRepository(session)
                ids = await repo.list_ids_by_group(group_id)
                for start in range(0, len(ids), self.clear_batch_size):
                    chunk = ids[start:start + self.clear_batch_size]
                    deleted += await repo.delete_ids(chunk)
                    await session.commit()
        except SQLAlchemyError as e:
            logger.error("Clearing activities for group %s stopped after %d: %s", group_id, deleted, e)
            raise StorageError("Failed to clear activities") from e
        logger.info("Cleared %d activities for group %s", deleted, group_id)
        return deleted
