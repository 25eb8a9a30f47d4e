"""
Task lifecycle state machine.

status and progress are two request channels that drive one lifecycle:

    progress == 0        <=> "To Do"        (started_at and completed_at cleared)
    0 < progress < 100   <=> "In Progress"  (started_at set once, completed_at cleared)
    progress == 100      <=> "Done"         (completed_at set)

`apply_update` is pure: it validates a patch against the current task and
returns the fields to write plus the events (activity entries, notifications,
broadcasts, deferred assignment notices) the caller must emit once the write
has been committed. The progress channel is applied first, then the status
channel, so an explicit status in the same patch wins.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, NamedTuple, Optional, Union

from groupwork.errors import AuthorizationError, ValidationError
from groupwork.models.enums import ActivityAction, NotificationType, TaskStatus
from groupwork.services.notification_dispatcher import AssignmentNotice

# Progress a task gets when it is moved to "In Progress" from either end.
IN_PROGRESS_NUDGE = 10

# Fields the server owns; a patch can never set them.
SERVER_FIELDS = frozenset({"started_at", "completed_at", "created_at", "updated_at"})


@dataclass(frozen=True)
class TaskState:
    """The slice of a task the state machine reads."""

    id: uuid.UUID
    group_id: uuid.UUID
    title: str
    assigned_by: str
    assigned_to: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    progress: int = 0
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    priority: Optional[str] = None
    due_date: Optional[datetime] = None

    @classmethod
    def from_task(cls, task: Any) -> "TaskState":
        try:
            status = TaskStatus.parse(task.status)
        except ValueError:
            status = TaskStatus.TODO
        return cls(
            id=task.id,
            group_id=task.group_id,
            title=task.title,
            assigned_by=task.assigned_by,
            assigned_to=task.assigned_to,
            status=status,
            progress=int(task.progress or 0),
            started_at=task.started_at,
            completed_at=task.completed_at,
            priority=task.priority,
            due_date=task.due_date,
        )


@dataclass(frozen=True)
class AssigneeProfile:
    """Denormalized snapshot of the user a task is being assigned to."""

    name: Optional[str] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class ActivityEvent:
    action: ActivityAction
    details: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NotifyEvent:
    """A single notification to one user."""

    user_id: str
    type: NotificationType
    message: str


@dataclass(frozen=True)
class BroadcastEvent:
    """One notification to every group member outside `exclude`."""

    type: NotificationType
    message: str
    exclude: FrozenSet[str]


@dataclass(frozen=True)
class AssignmentEvent:
    """Deferred, deduplicated task_assigned notification for the new assignee."""

    notice: AssignmentNotice


TaskEvent = Union[ActivityEvent, NotifyEvent, BroadcastEvent, AssignmentEvent]


class TaskTransition(NamedTuple):
    updates: Dict[str, Any]
    events: List[TaskEvent]


def parse_progress(raw: Any) -> int:
    """Accept an integer in [0, 100]; anything else is a ValidationError."""
    if isinstance(raw, bool):
        raise ValidationError("Progress must be an integer between 0 and 100")
    if isinstance(raw, float):
        if not raw.is_integer():
            raise ValidationError("Progress must be an integer between 0 and 100")
        raw = int(raw)
    if not isinstance(raw, int):
        raise ValidationError("Progress must be an integer between 0 and 100")
    if raw < 0 or raw > 100:
        raise ValidationError("Progress must be between 0 and 100")
    return raw


def parse_status(raw: Any) -> TaskStatus:
    try:
        return TaskStatus.parse(raw)
    except ValueError:
        raise ValidationError(
            f"Status must be one of: {', '.join(s.value for s in TaskStatus)}"
        ) from None


def initial_fields(now: datetime) -> Dict[str, Any]:
    """Lifecycle fields of a newly created task."""
    return {
        "status": TaskStatus.TODO.value,
        "progress": 0,
        "started_at": None,
        "completed_at": None,
        "created_at": now,
        "updated_at": now,
    }


def _counterpart(assignee: Optional[str], assigner: str, actor_id: str) -> Optional[str]:
    """The assigner when the assignee acts, otherwise the assignee."""
    if not assignee:
        return None
    if actor_id == assignee:
        return assigner
    return assignee


def apply_update(
    task: TaskState,
    patch: Mapping[str, Any],
    actor_id: str,
    member_ids: Iterable[str],
    now: datetime,
    assignee_profile: Optional[AssigneeProfile] = None,
    actor_name: Optional[str] = None,
) -> TaskTransition:
    """
    Validate `patch` and derive the resulting writes and events.

    Keys present in `patch` are the ones the client sent; a key explicitly set
    to None (e.g. assigned_to) is different from a missing key. Server-owned
    timestamps in the patch are ignored.

    Raises ValidationError or AuthorizationError; nothing is derived in that case.
    """
    members = set(member_ids)
    patch = {k: v for k, v in patch.items() if k not in SERVER_FIELDS}

    # ---- validation (before any derivation) ----
    new_progress: Optional[int] = None
    if patch.get("progress") is not None:
        new_progress = parse_progress(patch["progress"])
        if actor_id not in (task.assigned_to, task.assigned_by):
            raise AuthorizationError("Only the assignee or the task creator can update progress")

    new_status: Optional[TaskStatus] = None
    if patch.get("status") is not None:
        new_status = parse_status(patch["status"])

    reassigning = "assigned_to" in patch
    new_assignee: Optional[str] = None
    if reassigning:
        new_assignee = patch["assigned_to"] or None
        if new_assignee is not None and new_assignee not in members:
            raise ValidationError("Assigned user is not a group member")

    if "title" in patch and patch["title"] is not None and not str(patch["title"]).strip():
        raise ValidationError("Title cannot be empty")

    updates: Dict[str, Any] = {}
    events: List[TaskEvent] = []
    title = task.title

    # ---- plain fields ----
    if patch.get("title"):
        updates["title"] = str(patch["title"]).strip()
    if "description" in patch:
        updates["description"] = patch["description"] or ""
    if "due_date" in patch:
        updates["due_date"] = patch["due_date"]
    if patch.get("priority"):
        priority = patch["priority"]
        updates["priority"] = getattr(priority, "value", priority)

    # ---- reassignment ----
    if reassigning:
        previous = task.assigned_to
        profile = assignee_profile or AssigneeProfile()
        updates["assigned_to"] = new_assignee
        updates["assigned_to_name"] = profile.name if new_assignee else None
        updates["assigned_to_email"] = profile.email if new_assignee else None

        if new_assignee and new_assignee != previous:
            assignee_label = profile.name or "member"
            events.append(
                ActivityEvent(
                    ActivityAction.TASK_ASSIGNED,
                    f'Assigned task "{title}" to {assignee_label}',
                    {
                        "taskId": str(task.id),
                        "assigneeId": new_assignee,
                        "assigneeName": profile.name,
                        "previousAssigneeId": previous,
                    },
                )
            )
            events.append(
                AssignmentEvent(
                    AssignmentNotice(
                        task_id=task.id,
                        group_id=task.group_id,
                        title=updates.get("title", title),
                        assignee_id=new_assignee,
                        assigner_id=actor_id,
                        assigner_name=actor_name,
                        priority=updates.get("priority", task.priority),
                        due_date=updates.get("due_date", task.due_date),
                    )
                )
            )
            if previous:
                events.append(
                    NotifyEvent(
                        previous,
                        NotificationType.TASK_UNASSIGNED,
                        f'You were unassigned from task "{title}"',
                    )
                )
            events.append(
                BroadcastEvent(
                    NotificationType.TASK_ASSIGNMENT_CHANGED,
                    f'Task "{title}" assigned to {profile.name or "a member"}',
                    frozenset(u for u in (actor_id, previous, new_assignee) if u),
                )
            )
        elif new_assignee is None and previous:
            events.append(
                ActivityEvent(
                    ActivityAction.TASK_UNASSIGNED,
                    f'Unassigned user from task "{title}"',
                    {"taskId": str(task.id), "previousAssigneeId": previous},
                )
            )
            events.append(
                NotifyEvent(
                    previous,
                    NotificationType.TASK_UNASSIGNED,
                    f'You were unassigned from task "{title}"',
                )
            )

    # ---- lifecycle ----
    if new_progress is None and new_status is None:
        return TaskTransition(updates, events)

    status = task.status
    progress = task.progress
    started_at = task.started_at
    completed_at = task.completed_at
    task_ref = {"taskId": str(task.id)}

    if new_progress is not None:
        progress = new_progress
        if progress == 0:
            status, started_at, completed_at = TaskStatus.TODO, None, None
            events.append(ActivityEvent(ActivityAction.TASK_RESET, f'Reset progress for task "{title}"', task_ref))
        elif progress < 100:
            status = TaskStatus.IN_PROGRESS
            started_at = started_at or now
            completed_at = None
            events.append(
                ActivityEvent(
                    ActivityAction.TASK_PROGRESS,
                    f'Progress updated to {progress}% for "{title}"',
                    {**task_ref, "progress": progress},
                )
            )
        else:
            status, completed_at = TaskStatus.DONE, now
            events.append(ActivityEvent(ActivityAction.TASK_COMPLETED, f'Completed task "{title}"', task_ref))

    if new_status is not None:
        status = new_status
        if new_status == TaskStatus.IN_PROGRESS:
            started_at = started_at or now
            completed_at = None
            if progress in (0, 100):
                progress = IN_PROGRESS_NUDGE
            events.append(ActivityEvent(ActivityAction.TASK_STARTED, f'Started task "{title}"', task_ref))
        elif new_status == TaskStatus.DONE:
            completed_at = now
            progress = 100
            events.append(ActivityEvent(ActivityAction.TASK_COMPLETED, f'Completed task "{title}"', task_ref))
        else:
            progress, started_at, completed_at = 0, None, None
            events.append(ActivityEvent(ActivityAction.TASK_RESET, f'Reset task "{title}" to To Do', task_ref))

    updates.update(
        status=status.value,
        progress=progress,
        started_at=started_at,
        completed_at=completed_at,
    )

    assignee = updates["assigned_to"] if reassigning else task.assigned_to
    counterpart = _counterpart(assignee, task.assigned_by, actor_id)
    if counterpart:
        if new_status is not None:
            events.append(
                NotifyEvent(
                    counterpart,
                    NotificationType.TASK_STATUS,
                    f'Status changed to {status.value} ({progress}%) for task "{title}"',
                )
            )
        else:
            events.append(
                NotifyEvent(
                    counterpart,
                    NotificationType.TASK_PROGRESS,
                    f'Progress updated to {progress}% for task "{title}"',
                )
            )

    return TaskTransition(updates, events)
