"""
ActivityLog model.

Append-only audit trail per group. Rows are only ever removed by a bulk
group clear.
"""

import uuid
from datetime import datetime
from typing import Any, Dict

from sqlalchemy import DateTime, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from groupwork.models.base_model import JsonType, UUIDModel
from groupwork.utils.time import utc_now


class ActivityLog(UUIDModel):
    __tablename__ = "activity_logs"

    group_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    # Actor
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    details: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # "metadata" is reserved on declarative classes
    meta: Mapped[Dict[str, Any]] = mapped_column("metadata", JsonType, nullable=False, default=dict)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)
