"""
Dashboard feed aggregation.

`build_overview` stitches several independent reads into one response. Each
read has its own session and its own failure domain: a failed read is logged
and replaced by its empty default, so the overview itself always succeeds.
"""

import asyncio
import logging
from datetime import timedelta
from typing import List, Sequence, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from groupwork.errors import StorageError
from groupwork.models.enums import TaskStatus
from groupwork.models.group import Group
from groupwork.models.task import Task
from groupwork.repositories.group_repository import GroupRepository
from groupwork.repositories.notification_repository import NotificationRepository
from groupwork.repositories.task_repository import TaskRepository
from groupwork.schemas.activity import ActivityRead
from groupwork.schemas.dashboard import DashboardStats, Overview
from groupwork.schemas.group import GroupRead
from groupwork.schemas.notification import NotificationRead
from groupwork.schemas.user import UserProfileRead
from groupwork.services.activity_log_service import ActivityLogService, enrich_activities, sort_newest_first
from groupwork.services.notification_service import inbox_order
from groupwork.services.user_directory import UserDirectory
from groupwork.utils.time import utc_now

logger = logging.getLogger(__name__)


def compute_stats(group_count: int, tasks: Sequence[Task], user_id: str) -> DashboardStats:
    stats = DashboardStats(total_groups=group_count, total_tasks=len(tasks))
    for task in tasks:
        if task.status == TaskStatus.TODO.value:
            stats.pending_tasks += 1
        elif task.status == TaskStatus.IN_PROGRESS.value:
            stats.in_progress_tasks += 1
        elif task.status == TaskStatus.DONE.value:
            stats.completed_tasks += 1
        if task.assigned_to == user_id:
            stats.my_tasks += 1
    if stats.total_tasks:
        stats.completion_rate = round(100 * stats.completed_tasks / stats.total_tasks)
    return stats


class FeedAggregator:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        user_directory: UserDirectory,
        activity_log: ActivityLogService,
        notifications_limit: int = 50,
        activities_per_group: int = 5,
    ) -> None:
        self.session_factory = session_factory
        self.user_directory = user_directory
        self.activity_log = activity_log
        self.notifications_limit = notifications_limit
        self.activities_per_group = activities_per_group

    # ---- individual reads ----

    async def _groups(self, user_id: str) -> List[Tuple[Group, List[str]]]:
        async with self.session_factory() as session:
            repo = GroupRepository(session)
            groups = await repo.list_active_for_member(user_id)
            return [(group, await repo.member_ids(group.id)) for group in groups]

    async def _group_tasks(self, group_ids: Sequence[UUID]) -> List[Task]:
        async with self.session_factory() as session:
            repo = TaskRepository(session)
            tasks: List[Task] = []
            for group_id in group_ids:
                tasks.extend(await repo.list_by_group(group_id))
            return tasks

    async def _notifications(self, user_id: str) -> List[NotificationRead]:
        async with self.session_factory() as session:
            rows = await NotificationRepository(session).list_for_user(user_id)
        rows = inbox_order(rows)[: self.notifications_limit]
        return [NotificationRead.model_validate(n) for n in rows]

    async def _activities(self, group_ids: Sequence[UUID], per_group: int, limit: int = 0) -> List[ActivityRead]:
        batches = await asyncio.gather(
            *(self.activity_log.list_by_group(group_id, per_group) for group_id in group_ids)
        )
        entries = sort_newest_first(entry for batch in batches for entry in batch)
        if limit:
            entries = entries[:limit]
        return await enrich_activities(entries, self.user_directory)

    # ---- public operations ----

    async def build_overview(self, user_id: str) -> Overview:
        overview = Overview()

        profile = await self.user_directory.get_profile(user_id)
        if profile is not None:
            overview.user = UserProfileRead.model_validate(profile)

        try:
            groups = await self._groups(user_id)
        except Exception as e:
            logger.warning("Overview groups for %s unavailable: %s", user_id, e)
            groups = []
        overview.groups = [GroupRead.from_group(group, members) for group, members in groups]
        group_ids = [group.id for group, _ in groups]

        try:
            tasks = await self._group_tasks(group_ids)
            overview.stats = compute_stats(len(group_ids), tasks, user_id)
        except Exception as e:
            logger.warning("Overview stats for %s unavailable: %s", user_id, e)
            overview.stats = DashboardStats(total_groups=len(group_ids))

        try:
            overview.notifications = await self._notifications(user_id)
        except Exception as e:
            logger.warning("Overview notifications for %s unavailable: %s", user_id, e)

        try:
            overview.activities = await self._activities(group_ids, self.activities_per_group)
        except Exception as e:
            logger.warning("Overview activities for %s unavailable: %s", user_id, e)

        return overview

    async def stats(self, user_id: str) -> DashboardStats:
        try:
            groups = await self._groups(user_id)
            group_ids = [group.id for group, _ in groups]
            tasks = await self._group_tasks(group_ids)
        except SQLAlchemyError as e:
            raise StorageError("Failed to load dashboard stats") from e
        return compute_stats(len(group_ids), tasks, user_id)

    async def recent_activities(self, user_id: str, limit: int = 10) -> List[ActivityRead]:
        try:
            groups = await self._groups(user_id)
        except SQLAlchemyError as e:
            raise StorageError("Failed to load groups") from e
        if not groups:
            return []
        return await self._activities([group.id for group, _ in groups], limit, limit=limit)

    async def upcoming_deadlines(self, user_id: str, days: int = 7) -> List[Task]:
        """Open tasks assigned to the caller that fall due within `days`."""
        now = utc_now()
        try:
            async with self.session_factory() as session:
                return await TaskRepository(session).list_due_for_assignee(
                    user_id,
                    [TaskStatus.TODO.value, TaskStatus.IN_PROGRESS.value],
                    due_from=now,
                    due_to=now + timedelta(days=days),
                )
        except SQLAlchemyError as e:
            raise StorageError("Failed to load deadlines") from e
