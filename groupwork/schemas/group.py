"""
Group Pydantic schemas.
"""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from groupwork.schemas.base import ApiResponse


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    subject: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = ""

    @field_validator("name", "subject")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class GroupUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    subject: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None


class GroupJoin(BaseModel):
    access_code: str = Field(..., min_length=1, max_length=12)


class GroupRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str = ""
    subject: str
    created_by: str
    access_code: str
    is_active: bool
    created_at: datetime
    members: List[str] = Field(default_factory=list)

    @classmethod
    def from_group(cls, group: Any, members: List[str]) -> "GroupRead":
        return cls.model_validate(group).model_copy(update={"members": list(members)})


class MemberRead(BaseModel):
    uid: str
    full_name: str
    email: str = ""
    missing: bool = False


class GroupResponse(ApiResponse):
    group: GroupRead


class GroupListResponse(ApiResponse):
    count: int
    groups: List[GroupRead]


class MemberListResponse(ApiResponse):
    count: int
    members: List[MemberRead]
