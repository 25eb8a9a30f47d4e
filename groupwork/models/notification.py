"""
Notification model.

One row per recipient. Only `read`/`read_at` ever change after insert.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from groupwork.models.base_model import UUIDModel
from groupwork.utils.time import utc_now


class Notification(UUIDModel):
    __tablename__ = "notifications"

    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    task_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(as_uuid=True), nullable=True)
    group_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(as_uuid=True), nullable=True)
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    actor_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
