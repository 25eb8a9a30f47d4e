"""
Dashboard / overview Pydantic schemas.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from groupwork.schemas.activity import ActivityRead
from groupwork.schemas.base import ApiResponse
from groupwork.schemas.group import GroupRead
from groupwork.schemas.notification import NotificationRead
from groupwork.schemas.task import TaskRead
from groupwork.schemas.user import UserProfileRead


class DashboardStats(BaseModel):
    total_groups: int = 0
    total_tasks: int = 0
    pending_tasks: int = 0
    in_progress_tasks: int = 0
    completed_tasks: int = 0
    my_tasks: int = 0
    completion_rate: int = 0


class Overview(BaseModel):
    user: Optional[UserProfileRead] = None
    groups: List[GroupRead] = Field(default_factory=list)
    stats: DashboardStats = Field(default_factory=DashboardStats)
    notifications: List[NotificationRead] = Field(default_factory=list)
    activities: List[ActivityRead] = Field(default_factory=list)


class OverviewResponse(ApiResponse):
    overview: Overview


class StatsResponse(ApiResponse):
    stats: DashboardStats
