"""
Pytest configuration and shared fixtures.

Database tests run against a throwaway SQLite file (aiosqlite). The engine
uses NullPool so it can be driven from several `asyncio.run` calls.
"""

import asyncio
import os
import uuid
from datetime import timedelta
from typing import Iterable, Optional

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./groupwork-test.db")

import pytest
from jose import jwt
from sqlalchemy.pool import NullPool

from groupwork.core.config import settings
from groupwork.core.dependencies import build_services
from groupwork.db.base import Base
from groupwork.db.session import build_engine, build_session_factory
from groupwork.models import Group, GroupMember, Task, User
from groupwork.models.enums import TaskStatus
from groupwork.utils.time import utc_now


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests, no external deps")
    config.addinivalue_line("markers", "db: uses a temporary SQLite database")


@pytest.fixture
def session_factory(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'groupwork.db'}", poolclass=NullPool)

    async def create_all():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_all())
    yield build_session_factory(engine)
    asyncio.run(engine.dispose())


@pytest.fixture
def services(session_factory):
    return build_services(session_factory, settings)


def make_token(uid: str, email: Optional[str] = None) -> str:
    claims = {"sub": uid}
    if email:
        claims["email"] = email
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def auth_headers(uid: str) -> dict:
    return {"Authorization": f"Bearer {make_token(uid, f'{uid}@example.com')}"}


async def seed_users(session_factory, *users: str) -> None:
    """Create users named after their ids ("alice" -> full name "Alice")."""
    async with session_factory() as session:
        for uid in users:
            session.add(User(id=uid, email=f"{uid}@example.com", full_name=uid.title()))
        await session.commit()


async def seed_group(session_factory, creator: str, members: Iterable[str] = (), name: str = "Study Group") -> uuid.UUID:
    async with session_factory() as session:
        group = Group(name=name, subject="Math", description="", created_by=creator, access_code="ABC123")
        session.add(group)
        await session.flush()
        joined = utc_now()
        for i, uid in enumerate([creator, *[m for m in members if m != creator]]):
            session.add(GroupMember(group_id=group.id, user_id=uid, joined_at=joined + timedelta(seconds=i)))
        await session.commit()
        return group.id


async def seed_task(session_factory, group_id: uuid.UUID, assigned_by: str, assigned_to: Optional[str] = None, **fields) -> uuid.UUID:
    now = utc_now()
    async with session_factory() as session:
        task = Task(
            title=fields.pop("title", "Write report"),
            description="",
            group_id=group_id,
            assigned_by=assigned_by,
            assigned_to=assigned_to,
            status=fields.pop("status", TaskStatus.TODO.value),
            progress=fields.pop("progress", 0),
            created_at=now,
            updated_at=now,
            **fields,
        )
        session.add(task)
        await session.commit()
        return task.id
