"""
Activity log Pydantic schemas.
"""

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from groupwork.models.enums import ActivityAction
from groupwork.schemas.base import ApiResponse


def user_ref(value: Any) -> Optional[str]:
    """A metadata user id usable for name lookup, or None."""
    if isinstance(value, str) and value:
        return value
    return None


class ActivityLogCreate(BaseModel):
    """Schema for a client-originated activity entry."""

    group_id: UUID
    action: ActivityAction
    details: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ActivityRead(BaseModel):
    """Activity entry with display names resolved (null when unknown)."""

    id: UUID
    group_id: UUID
    user_id: str
    action: str
    details: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)
    timestamp: Optional[datetime] = None
    actor_name: Optional[str] = None
    assignee_name: Optional[str] = None
    previous_assignee_name: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: Any, names: Optional[Mapping[str, Optional[str]]] = None) -> "ActivityRead":
        names = names or {}
        meta = dict(entry.meta or {})
        return cls(
            id=entry.id,
            group_id=entry.group_id,
            user_id=entry.user_id,
            action=entry.action,
            details=entry.details or "",
            metadata=meta,
            timestamp=entry.timestamp,
            actor_name=names.get(entry.user_id),
            assignee_name=names.get(user_ref(meta.get("assigneeId"))),
            previous_assignee_name=names.get(user_ref(meta.get("previousAssigneeId"))),
        )


class ActivityResponse(ApiResponse):
    activity: ActivityRead


class ActivityListResponse(ApiResponse):
    count: int
    activities: List[ActivityRead]


class ClearActivitiesResponse(ApiResponse):
    deleted: int
