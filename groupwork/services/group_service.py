"""
Group roster management: create, join by access code, update, soft delete, leave.

Roster changes are the primary mutation; the matching activity entry and the
member fan-out run afterwards and are best-effort.
"""

import logging
import secrets
import string
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from groupwork.errors import AuthorizationError, NotFoundError, StorageError, ValidationError
from groupwork.models.enums import ActivityAction, NotificationType
from groupwork.models.group import Group
from groupwork.repositories.group_repository import GroupRepository
from groupwork.repositories.user_repository import UserRepository
from groupwork.schemas.group import GroupCreate, GroupUpdate, MemberRead
from groupwork.services.activity_log_service import ActivityLogService
from groupwork.services.fanout import FanOutCoordinator

logger = logging.getLogger(__name__)

ACCESS_CODE_LENGTH = 6
ACCESS_CODE_ALPHABET = string.ascii_uppercase + string.digits
ACCESS_CODE_ATTEMPTS = 10


def generate_access_code(length: int = ACCESS_CODE_LENGTH) -> str:
    return "".join(secrets.choice(ACCESS_CODE_ALPHABET) for _ in range(length))


class GroupService:
    """Service for group business logic."""

    def __init__(
        self,
        db: AsyncSession,
        fanout: FanOutCoordinator,
        activity_log: ActivityLogService,
        members_limit: int = 200,
    ):
        self.db = db
        self.repository = GroupRepository(db)
        self.users = UserRepository(db)
        self.fanout = fanout
        self.activity_log = activity_log
        self.members_limit = members_limit

    async def _commit(self, what: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StorageError(f"Failed to {what}") from e

    async def _get_group(self, group_id: UUID) -> Group:
        group = await self.repository.get_by_id(group_id)
        if not group:
            raise NotFoundError("Group not found")
        return group

    async def _unique_access_code(self) -> str:
        for _ in range(ACCESS_CODE_ATTEMPTS):
            code = generate_access_code()
            if await self.repository.get_active_by_access_code(code) is None:
                return code
        raise StorageError("Could not allocate a unique access code")

    async def create_group(self, actor_id: str, data: GroupCreate, email: Optional[str] = None) -> Tuple[Group, List[str]]:
        await self.users.ensure(actor_id, email)
        group = await self.repository.create(
            name=data.name,
            subject=data.subject,
            description=data.description or "",
            created_by=actor_id,
            access_code=await self._unique_access_code(),
        )
        await self._commit("create group")
        logger.info("Group %s created by %s", group.id, actor_id)

        await self.activity_log.append(
            group.id,
            actor_id,
            ActivityAction.GROUP_CREATED,
            f'Created group "{group.name}"',
            {"name": group.name, "subject": group.subject},
        )
        return group, [actor_id]

    async def list_my_groups(self, user_id: str) -> List[Tuple[Group, List[str]]]:
        groups = await self.repository.list_active_for_member(user_id)
        return [(group, await self.repository.member_ids(group.id)) for group in groups]

    async def get_group(self, group_id: UUID, user_id: str) -> Tuple[Group, List[str]]:
        group = await self._get_group(group_id)
        member_ids = await self.repository.member_ids(group_id)
        if user_id not in member_ids:
            raise AuthorizationError("Access denied. You are not a member of this group")
        return group, member_ids

    async def list_members(self, group_id: UUID, user_id: str) -> List[MemberRead]:
        """Expanded member details; ids without a user record are marked missing."""
        _, member_ids = await self.get_group(group_id, user_id)
        member_ids = member_ids[: self.members_limit]
        users = {u.id: u for u in await self.users.get_many(member_ids)}

        members = []
        for uid in member_ids:
            user = users.get(uid)
            if user is None:
                members.append(MemberRead(uid=uid, full_name="Unknown", missing=True))
                continue
            members.append(
                MemberRead(
                    uid=uid,
                    full_name=(user.full_name or "").strip() or "Unnamed",
                    email=(user.email or "").strip(),
                )
            )
        return members

    async def join_group(self, access_code: str, actor_id: str, email: Optional[str] = None) -> Tuple[Group, List[str]]:
        group = await self.repository.get_active_by_access_code(access_code.strip().upper())
        if not group:
            raise NotFoundError("Invalid access code")
        member_ids = await self.repository.member_ids(group.id)
        if actor_id in member_ids:
            raise ValidationError("You are already a member of this group")

        await self.repository.add_member(group.id, actor_id)
        await self.users.ensure(actor_id, email)
        await self._commit("join group")
        logger.info("User %s joined group %s", actor_id, group.id)

        await self.activity_log.append(group.id, actor_id, ActivityAction.MEMBER_JOINED, "Joined the group")
        await self.fanout.broadcast(
            member_ids,
            NotificationType.MEMBER_JOINED,
            exclude=[actor_id],
            message=f'A new member joined "{group.name}"',
            group_id=group.id,
            actor_id=actor_id,
        )
        return group, member_ids + [actor_id]

    async def update_group(self, group_id: UUID, data: GroupUpdate, actor_id: str) -> Group:
        group = await self._get_group(group_id)
        if group.created_by != actor_id:
            raise AuthorizationError("Only group creator can update group details")

        changes: Dict[str, Any] = {}
        if data.name:
            changes["name"] = data.name
        if data.description is not None:
            changes["description"] = data.description
        if data.subject:
            changes["subject"] = data.subject
        if not changes:
            raise ValidationError("No fields to update")

        group = await self.repository.update(group, changes)
        await self._commit("update group")

        await self.activity_log.append(
            group.id,
            actor_id,
            ActivityAction.GROUP_UPDATED,
            "Updated group details",
            {"fields": sorted(changes)},
        )
        return group

    async def delete_group(self, group_id: UUID, actor_id: str) -> None:
        """Soft delete: the group is deactivated, its tasks and logs stay."""
        group = await self._get_group(group_id)
        if group.created_by != actor_id:
            raise AuthorizationError("Only group creator can delete group")

        member_ids = await self.repository.member_ids(group_id)
        await self.repository.update(group, {"is_active": False})
        await self._commit("delete group")
        logger.info("Group %s deactivated by %s", group_id, actor_id)

        await self.fanout.broadcast(
            member_ids,
            NotificationType.GROUP_DELETED,
            exclude=[actor_id],
            message=f'Group "{group.name}" was deleted',
            group_id=group.id,
            actor_id=actor_id,
        )

    async def leave_group(self, group_id: UUID, actor_id: str) -> None:
        group = await self._get_group(group_id)
        member_ids = await self.repository.member_ids(group_id)
        if actor_id not in member_ids:
            raise ValidationError("You are not a member of this group")
        if group.created_by == actor_id:
            raise ValidationError("Group creator must delete or transfer ownership before leaving")

        remaining = [m for m in member_ids if m != actor_id]
        await self.repository.remove_member(group_id, actor_id)
        if not remaining:
            await self.repository.update(group, {"is_active": False})
        await self._commit("leave group")
        logger.info("User %s left group %s", actor_id, group_id)

        await self.activity_log.append(group.id, actor_id, ActivityAction.MEMBER_LEFT, "Left the group")
        await self.fanout.broadcast(
            remaining,
            NotificationType.MEMBER_LEFT,
            exclude=[actor_id],
            message=f'A member left "{group.name}"',
            group_id=group.id,
            actor_id=actor_id,
        )
