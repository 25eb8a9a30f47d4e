"""
Repository for Group and GroupMember database operations.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import and_, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from groupwork.models.group import Group, GroupMember


class GroupRepository:
    """Repository for Group operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, group_id: UUID) -> Optional[Group]:
        return await self.db.get(Group, group_id)

    async def get_active_by_access_code(self, access_code: str) -> Optional[Group]:
        result = await self.db.execute(
            select(Group)
            .where(and_(Group.access_code == access_code, Group.is_active.is_(True)))
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_active_for_member(self, user_id: str) -> List[Group]:
        """Active groups whose roster contains `user_id`."""
        result = await self.db.execute(
            select(Group)
            .join(GroupMember, GroupMember.group_id == Group.id)
            .where(and_(GroupMember.user_id == user_id, Group.is_active.is_(True)))
            .order_by(Group.created_at.desc())
        )
        return list(result.scalars().all())

    async def member_ids(self, group_id: UUID) -> List[str]:
        result = await self.db.execute(
            select(GroupMember.user_id)
            .where(GroupMember.group_id == group_id)
            .order_by(GroupMember.joined_at, GroupMember.user_id)
        )
        return list(result.scalars().all())

    async def create(
        self,
        name: str,
        subject: str,
        created_by: str,
        access_code: str,
        description: str = "",
    ) -> Group:
        """Create a group with its creator as the first member."""
        group = Group(
            name=name,
            subject=subject,
            description=description,
            created_by=created_by,
            access_code=access_code,
            is_active=True,
        )
        self.db.add(group)
        await self.db.flush()
        self.db.add(GroupMember(group_id=group.id, user_id=created_by))
        await self.db.flush()
        await self.db.refresh(group)
        return group

    async def add_member(self, group_id: UUID, user_id: str) -> None:
        self.db.add(GroupMember(group_id=group_id, user_id=user_id))
        await self.db.flush()

    async def remove_member(self, group_id: UUID, user_id: str) -> None:
        await self.db.execute(
            delete(GroupMember).where(
                and_(GroupMember.group_id == group_id, GroupMember.user_id == user_id)
            )
        )
        await self.db.flush()

    async def update(self, group: Group, data: Dict[str, Any]) -> Group:
        for field, value in data.items():
            setattr(group, field, value)
        await self.db.flush()
        await self.db.refresh(group)
        return group
