"""
Task business logic service.

Every mutation follows the same order: validate, write and commit the task
(the primary mutation), then emit the derived side effects. Side effects are
best-effort and can never turn a committed write into a failed response.
"""

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from groupwork.errors import AuthorizationError, NotFoundError, StorageError, ValidationError
from groupwork.models.enums import ActivityAction, NotificationType, TaskStatus
from groupwork.models.group import Group
from groupwork.models.task import Task
from groupwork.repositories.group_repository import GroupRepository
from groupwork.repositories.task_repository import TaskRepository
from groupwork.schemas.task import TaskCreate
from groupwork.services.activity_log_service import ActivityLogService
from groupwork.services.fanout import FanOutCoordinator
from groupwork.services.notification_dispatcher import AssignmentNotice, NotificationDispatcher
from groupwork.services.task_state import (
    ActivityEvent,
    AssigneeProfile,
    AssignmentEvent,
    BroadcastEvent,
    NotifyEvent,
    TaskEvent,
    TaskState,
    apply_update,
    initial_fields,
)
from groupwork.services.user_directory import UserDirectory
from groupwork.utils.time import epoch_ms, utc_now

logger = logging.getLogger(__name__)


def parse_status_filter(status: Optional[str]) -> Optional[str]:
    if not status:
        return None
    try:
        return TaskStatus.parse(status).value
    except ValueError:
        raise ValidationError(f"Unknown status filter: {status}") from None


class TaskService:
    """Service for task business logic."""

    def __init__(
        self,
        db: AsyncSession,
        dispatcher: NotificationDispatcher,
        fanout: FanOutCoordinator,
        activity_log: ActivityLogService,
        user_directory: UserDirectory,
    ):
        self.db = db
        self.repository = TaskRepository(db)
        self.groups = GroupRepository(db)
        self.dispatcher = dispatcher
        self.fanout = fanout
        self.activity_log = activity_log
        self.user_directory = user_directory

    # ---- helpers ----

    async def _group_for_member(self, group_id: UUID, user_id: str) -> Tuple[Group, List[str]]:
        group = await self.groups.get_by_id(group_id)
        if not group:
            raise NotFoundError("Group not found")
        member_ids = await self.groups.member_ids(group_id)
        if user_id not in member_ids:
            raise AuthorizationError("You are not a member of this group")
        return group, member_ids

    async def _get_task(self, task_id: UUID) -> Task:
        task = await self.repository.get_by_id(task_id)
        if not task:
            raise NotFoundError("Task not found")
        return task

    async def _assignee_profile(self, user_id: Optional[str]) -> AssigneeProfile:
        if not user_id:
            return AssigneeProfile()
        user = await self.user_directory.get_profile(user_id)
        if user is None:
            logger.warning("Assignee %s has no user record", user_id)
            return AssigneeProfile()
        return AssigneeProfile(name=user.full_name or None, email=user.email)

    async def _commit(self, what: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StorageError(f"Failed to {what}") from e

    async def _emit(self, task: Task, events: List[TaskEvent], member_ids: List[str], actor_id: str) -> None:
        """Run the side effects derived for a committed task write."""
        pending = []
        for event in events:
            if isinstance(event, ActivityEvent):
                pending.append(
                    self.activity_log.append(task.group_id, actor_id, event.action, event.details, event.metadata)
                )
            elif isinstance(event, NotifyEvent):
                pending.append(
                    self.dispatcher.notify(
                        event.user_id,
                        event.type,
                        message=event.message,
                        task_id=task.id,
                        group_id=task.group_id,
                        actor_id=actor_id,
                    )
                )
            elif isinstance(event, BroadcastEvent):
                pending.append(
                    self.fanout.broadcast(
                        member_ids,
                        event.type,
                        exclude=event.exclude,
                        message=event.message,
                        task_id=task.id,
                        group_id=task.group_id,
                        actor_id=actor_id,
                    )
                )
            elif isinstance(event, AssignmentEvent):
                self.dispatcher.schedule_assignment(event.notice)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    # ---- operations ----

    async def create_task(self, actor_id: str, data: TaskCreate) -> Task:
        group, member_ids = await self._group_for_member(data.group_id, actor_id)

        assignee_id = data.assigned_to or None
        if assignee_id and assignee_id not in member_ids:
            raise ValidationError("Assigned user is not a group member")

        profile = await self._assignee_profile(assignee_id)
        assigner_names = await self.user_directory.display_names([actor_id])
        assigner_name = assigner_names.get(actor_id)

        now = utc_now()
        task = await self.repository.create(
            title=data.title,
            description=data.description or "",
            group_id=group.id,
            assigned_to=assignee_id,
            assigned_to_name=profile.name,
            assigned_to_email=profile.email,
            assigned_by=actor_id,
            assigned_by_name=assigner_name,
            priority=data.priority.value,
            due_date=data.due_date,
            **initial_fields(now),
        )
        await self._commit("create task")
        logger.info("Task %s created in group %s by %s", task.id, group.id, actor_id)

        events: List[TaskEvent] = [
            ActivityEvent(
                ActivityAction.TASK_CREATED,
                f"Created task: {task.title}",
                {"taskId": str(task.id), "title": task.title, "assignedTo": assignee_id},
            ),
            BroadcastEvent(
                NotificationType.TASK_CREATED,
                f'New task "{task.title}" created in your group',
                frozenset(u for u in (actor_id, assignee_id) if u),
            ),
        ]
        if assignee_id:
            events.append(
                ActivityEvent(
                    ActivityAction.TASK_ASSIGNED,
                    f'Assigned task "{task.title}" to {profile.name or "member"}',
                    {"taskId": str(task.id), "assigneeId": assignee_id, "assigneeName": profile.name},
                )
            )
            events.append(
                AssignmentEvent(
                    AssignmentNotice(
                        task_id=task.id,
                        group_id=group.id,
                        title=task.title,
                        assignee_id=assignee_id,
                        assigner_id=actor_id,
                        assigner_name=assigner_name,
                        priority=task.priority,
                        due_date=task.due_date,
                    )
                )
            )
        await self._emit(task, events, member_ids, actor_id)
        return task

    async def update_task(self, task_id: UUID, patch: Mapping[str, Any], actor_id: str) -> Task:
        """Apply a partial update; `patch` holds only the fields the client sent."""
        task = await self._get_task(task_id)
        _, member_ids = await self._group_for_member(task.group_id, actor_id)

        new_assignee = patch.get("assigned_to")
        profile = None
        if new_assignee and new_assignee in member_ids:
            profile = await self._assignee_profile(new_assignee)

        updates, events = apply_update(
            TaskState.from_task(task),
            patch,
            actor_id=actor_id,
            member_ids=member_ids,
            now=utc_now(),
            assignee_profile=profile,
        )
        updates["updated_at"] = utc_now()

        task = await self.repository.update(task, updates)
        await self._commit("update task")
        logger.info("Task %s updated by %s fields=%s", task.id, actor_id, sorted(updates))

        await self._emit(task, events, member_ids, actor_id)
        return task

    async def get_task(self, task_id: UUID, actor_id: str) -> Task:
        task = await self._get_task(task_id)
        await self._group_for_member(task.group_id, actor_id)
        return task

    async def list_group_tasks(self, group_id: UUID, actor_id: str, status: Optional[str] = None) -> List[Task]:
        await self._group_for_member(group_id, actor_id)
        return await self.repository.list_by_group(group_id, status=parse_status_filter(status))

    async def list_my_tasks(self, actor_id: str, status: Optional[str] = None) -> List[Task]:
        """Tasks assigned to or by the caller, earliest due date first, undated last."""
        tasks = await self.repository.list_for_user(actor_id, status=parse_status_filter(status))
        return sorted(tasks, key=lambda t: (t.due_date is None, epoch_ms(t.due_date)))

    async def delete_task(self, task_id: UUID, actor_id: str) -> None:
        task = await self._get_task(task_id)
        if task.assigned_by != actor_id:
            raise AuthorizationError("Only task creator can delete task")

        snapshot: Dict[str, Any] = {
            "id": task.id,
            "group_id": task.group_id,
            "title": task.title,
            "assigned_to": task.assigned_to,
        }
        await self.repository.delete(task)
        await self._commit("delete task")
        logger.info("Task %s deleted by %s", snapshot["id"], actor_id)

        await self.activity_log.append(
            snapshot["group_id"],
            actor_id,
            ActivityAction.TASK_DELETED,
            f"Deleted task: {snapshot['title']}",
            {"taskId": str(snapshot["id"]), "title": snapshot["title"]},
        )
        if snapshot["assigned_to"]:
            await self.dispatcher.notify(
                snapshot["assigned_to"],
                NotificationType.TASK_DELETED,
                message=f'Task "{snapshot["title"]}" was deleted',
                task_id=snapshot["id"],
                group_id=snapshot["group_id"],
                actor_id=actor_id,
            )
