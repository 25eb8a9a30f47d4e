"""
Base model pieces shared by all tables.

- UUID primary key generated client-side
- a JSON column type that becomes JSONB on PostgreSQL
"""

import uuid

from sqlalchemy import JSON, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from groupwork.db.base import Base

JsonType = JSON().with_variant(JSONB(), "postgresql")


class UUIDModel(Base):
    """Abstract base class for tables keyed by a generated UUID."""

    __abstract__ = True  # This means: don't create a table for this class

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
