"""
User model.

Users are keyed by the uid issued by the identity provider, so the id is a
string rather than a generated UUID.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from groupwork.db.base import Base
from groupwork.utils.time import utc_now


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    school: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    course: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    year_level: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    section: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    # URL only; the blob itself lives in external storage
    profile_picture: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    @property
    def display_name(self) -> str:
        return self.full_name or self.email or "Unknown"
