"""Enumerations shared by models, schemas and services."""

from enum import Enum


class TaskStatus(str, Enum):
    """Task lifecycle status, stored as its display value."""

    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    DONE = "Done"

    @classmethod
    def parse(cls, raw: object) -> "TaskStatus":
        """Match a client-supplied status case-insensitively; raises ValueError."""
        if isinstance(raw, cls):
            return raw
        text = str(raw or "").strip().lower()
        for member in cls:
            if member.value.lower() == text:
                return member
        raise ValueError(f"Unknown task status: {raw!r}")


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ActivityAction(str, Enum):
    TASK_CREATED = "task_created"
    TASK_ASSIGNED = "task_assigned"
    TASK_UNASSIGNED = "task_unassigned"
    TASK_STARTED = "task_started"
    TASK_PROGRESS = "task_progress"
    TASK_COMPLETED = "task_completed"
    TASK_RESET = "task_reset"
    TASK_DELETED = "task_deleted"
    GROUP_CREATED = "group_created"
    GROUP_UPDATED = "group_updated"
    MEMBER_JOINED = "member_joined"
    MEMBER_LEFT = "member_left"
    FILE_UPLOADED = "file_uploaded"
    FILE_DELETED = "file_deleted"
    NOTE = "note"


class NotificationType(str, Enum):
    TASK_ASSIGNED = "task_assigned"
    TASK_UNASSIGNED = "task_unassigned"
    TASK_ASSIGNMENT_CHANGED = "task_assignment_changed"
    TASK_CREATED = "task_created"
    TASK_PROGRESS = "task_progress"
    TASK_STATUS = "task_status"
    TASK_DELETED = "task_deleted"
    GROUP_DELETED = "group_deleted"
    MEMBER_JOINED = "member_joined"
    MEMBER_LEFT = "member_left"
