"""
Models package.

Import all models here so they are registered with SQLAlchemy.
"""

from groupwork.models.user import User
from groupwork.models.group import Group, GroupMember
from groupwork.models.task import Task
from groupwork.models.activity_log import ActivityLog
from groupwork.models.notification import Notification

__all__ = [
    "User",
    "Group",
    "GroupMember",
    "Task",
    "ActivityLog",
    "Notification",
]
