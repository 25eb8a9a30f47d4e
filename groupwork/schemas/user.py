"""
User profile Pydantic schemas.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from groupwork.schemas.base import ApiResponse


class UserProfileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    uid: str = Field(validation_alias="id")
    full_name: Optional[str] = None
    email: Optional[str] = None
    school: Optional[str] = None
    course: Optional[str] = None
    year_level: Optional[str] = None
    section: Optional[str] = None
    profile_picture: Optional[str] = None


class UserProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=255)
    school: Optional[str] = Field(None, max_length=255)
    course: Optional[str] = Field(None, max_length=255)
    year_level: Optional[str] = Field(None, max_length=50)
    section: Optional[str] = Field(None, max_length=50)


class ProfileResponse(ApiResponse):
    user: UserProfileRead
