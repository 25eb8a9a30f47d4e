"""
Repository for Task database operations.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from groupwork.models.task import Task


class TaskRepository:
    """Repository for Task operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, task_id: UUID) -> Optional[Task]:
        return await self.db.get(Task, task_id)

    async def list_by_group(self, group_id: UUID, status: Optional[str] = None) -> List[Task]:
        """Tasks of one group, newest first, optionally filtered by status."""
        query = select(Task).where(Task.group_id == group_id)
        if status:
            query = query.where(Task.status == status)
        query = query.order_by(Task.created_at.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_for_user(self, user_id: str, status: Optional[str] = None) -> List[Task]:
        """Tasks assigned to or created by `user_id` (unordered)."""
        query = select(Task).where(or_(Task.assigned_to == user_id, Task.assigned_by == user_id))
        if status:
            query = query.where(Task.status == status)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_due_for_assignee(
        self,
        user_id: str,
        statuses: List[str],
        due_from: datetime,
        due_to: datetime,
    ) -> List[Task]:
        result = await self.db.execute(
            select(Task)
            .where(
                and_(
                    Task.assigned_to == user_id,
                    Task.status.in_(statuses),
                    Task.due_date.is_not(None),
                    Task.due_date >= due_from,
                    Task.due_date <= due_to,
                )
            )
            .order_by(Task.due_date.asc())
        )
        return list(result.scalars().all())

    async def create(self, **fields: Any) -> Task:
        task = Task(**fields)
        self.db.add(task)
        await self.db.flush()
        await self.db.refresh(task)
        return task

    async def update(self, task: Task, data: Dict[str, Any]) -> Task:
        for field, value in data.items():
            setattr(task, field, value)
        await self.db.flush()
        await self.db.refresh(task)
        return task

    async def delete(self, task: Task) -> None:
        await self.db.delete(task)
        await self.db.flush()
