"""
Repository for ActivityLog database operations.
"""

from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from groupwork.models.activity_log import ActivityLog


class ActivityLogRepository:
    """Repository for ActivityLog operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        group_id: UUID,
        user_id: str,
        action: str,
        details: str = "",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ActivityLog:
        entry = ActivityLog(
            group_id=group_id,
            user_id=user_id,
            action=action,
            details=details or "",
            meta=metadata or {},
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def list_by_group(self, group_id: UUID, limit: int) -> List[ActivityLog]:
        """
        Up to `limit` entries of a group.

        No ORDER BY on purpose: callers sort in memory, so the store does not
        need a composite (group_id, timestamp) index.
        """
        result = await self.db.execute(
            select(ActivityLog).where(ActivityLog.group_id == group_id).limit(limit)
        )
        return list(result.scalars().all())

    async def list_ids_by_group(self, group_id: UUID) -> List[UUID]:
        result = await self.db.execute(select(ActivityLog.id).where(ActivityLog.group_id == group_id))
        return list(result.scalars().all())

    async def delete_ids(self, ids: Sequence[UUID]) -> int:
        if not ids:
            return 0
        result = await self.db.execute(delete(ActivityLog).where(ActivityLog.id.in_(list(ids))))
        await self.db.flush()
        return result.rowcount or 0
