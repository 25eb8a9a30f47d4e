"""
Task Pydantic schemas.
"""

from datetime import datetime
from typing import List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, field_validator

from groupwork.models.enums import TaskPriority
from groupwork.schemas.base import ApiResponse


class TaskCreate(BaseModel):
    """Schema for creating a task. Lifecycle fields are always server-assigned."""

    model_config = ConfigDict(extra="ignore")

    title: str = Field(..., min_length=1, max_length=300)
    description: Optional[str] = ""
    group_id: UUID
    assigned_to: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: TaskPriority = TaskPriority.MEDIUM

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title cannot be empty")
        return v.strip()


class TaskUpdate(BaseModel):
    """
    Schema for a task patch. Only fields the client sends are applied
    (use model_dump(exclude_unset=True)); unknown fields such as
    started_at/completed_at are dropped.
    """

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = Field(None, max_length=300)
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    status: Optional[str] = None
    # Range and integrality are checked by the state machine
    progress: Optional[Union[StrictInt, StrictFloat]] = None
    due_date: Optional[datetime] = None
    priority: Optional[TaskPriority] = None


class TaskRead(BaseModel):
    """Schema for reading task data (API response)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str = ""
    group_id: UUID
    assigned_to: Optional[str] = None
    assigned_to_name: Optional[str] = None
    assigned_to_email: Optional[str] = None
    assigned_by: str
    assigned_by_name: Optional[str] = None
    status: str
    priority: str
    due_date: Optional[datetime] = None
    progress: int
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class TaskResponse(ApiResponse):
    task: TaskRead


class TaskListResponse(ApiResponse):
    count: int
    tasks: List[TaskRead]
