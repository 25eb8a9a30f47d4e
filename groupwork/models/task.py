"""
Task model.

status and progress are two views of one lifecycle; they are only ever
written together through the task state machine.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from groupwork.models.base_model import UUIDModel
from groupwork.models.enums import TaskPriority, TaskStatus
from groupwork.utils.time import utc_now


class Task(UUIDModel):
    __tablename__ = "tasks"

    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # No FK: deleting or leaving a group never cascades to its tasks
    group_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)

    assigned_to: Mapped[Optional[str]] = mapped_column(String(128), nullable=True, index=True)
    assigned_to_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    assigned_to_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    assigned_by: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    assigned_by_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default=TaskStatus.TODO.value)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default=TaskPriority.MEDIUM.value)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)

    __table_args__ = (Index("ix_tasks_group_status", "group_id", "status"),)
