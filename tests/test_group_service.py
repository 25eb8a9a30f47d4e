import asyncio
import re

import pytest
from sqlalchemy import select

from conftest import seed_group, seed_users
from groupwork.errors import AuthorizationError, NotFoundError, ValidationError
from groupwork.models import ActivityLog, Group, Notification, User
from groupwork.schemas.group import GroupCreate, GroupUpdate
from groupwork.services.group_service import GroupService, generate_access_code

pytestmark = pytest.mark.db


def group_service(session, services) -> GroupService:
    return GroupService(session, services.fanout, services.activity_log)


async def all_rows(session_factory, model):
    async with session_factory() as session:
        return list((await session.execute(select(model))).scalars().all())


@pytest.mark.unit
def test_access_code_shape():
    for _ in range(50):
        assert re.fullmatch(r"[A-Z0-9]{6}", generate_access_code())


def test_create_and_join_by_access_code(services, session_factory):
    async def scenario():
        async with session_factory() as session:
            group, members = await group_service(session, services).create_group(
                "owner", GroupCreate(name="Physics", subject="Science"), email="owner@example.com"
            )
        assert members == ["owner"]

        async with session_factory() as session:
            joined, members = await group_service(session, services).join_group(
                group.access_code.lower(), "newbie", email="newbie@example.com"
            )
        assert joined.id == group.id
        assert members == ["owner", "newbie"]

        async with session_factory() as session:
            with pytest.raises(ValidationError):
                await group_service(session, services).join_group(group.access_code, "newbie")
            with pytest.raises(NotFoundError):
                await group_service(session, services).join_group("ZZZZZZ", "newbie")

        notes = await all_rows(session_factory, Notification)
        actions = sorted(a.action for a in await all_rows(session_factory, ActivityLog))
        users = sorted(u.id for u in await all_rows(session_factory, User))
        return notes, actions, users

    notes, actions, users = asyncio.run(scenario())

    assert [(n.user_id, n.type) for n in notes] == [("owner", "member_joined")]
    assert actions == ["group_created", "member_joined"]
    assert users == ["newbie", "owner"]


def test_members_listing_marks_unknown_users(services, session_factory):
    async def scenario():
        await seed_users(session_factory, "owner")
        group_id = await seed_group(session_factory, "owner", ["ghost"])
        async with session_factory() as session:
            service = group_service(session, services)
            members = await service.list_members(group_id, "owner")
            with pytest.raises(AuthorizationError):
                await service.list_members(group_id, "outsider")
        return members

    members = asyncio.run(scenario())

    assert [(m.uid, m.full_name, m.missing) for m in members] == [
        ("owner", "Owner", False),
        ("ghost", "Unknown", True),
    ]


def test_only_creator_updates_and_deletes(services, session_factory):
    async def scenario():
        group_id = await seed_group(session_factory, "owner", ["member"])
        async with session_factory() as session:
            service = group_service(session, services)
            with pytest.raises(AuthorizationError):
                await service.update_group(group_id, GroupUpdate(name="Hijacked"), "member")
            with pytest.raises(ValidationError):
                await service.update_group(group_id, GroupUpdate(), "owner")
            updated = await service.update_group(group_id, GroupUpdate(name="Renamed"), "owner")
            assert updated.name == "Renamed"
            with pytest.raises(AuthorizationError):
                await service.delete_group(group_id, "member")
            await service.delete_group(group_id, "owner")

        [group] = await all_rows(session_factory, Group)
        notes = await all_rows(session_factory, Notification)
        async with session_factory() as session:
            remaining = await group_service(session, services).list_my_groups("member")
        return group, notes, remaining

    group, notes, remaining = asyncio.run(scenario())

    assert group.is_active is False
    assert [(n.user_id, n.type) for n in notes] == [("member", "group_deleted")]
    assert remaining == []


def test_leave_group_rules(services, session_factory):
    async def scenario():
        group_id = await seed_group(session_factory, "owner", ["m1", "m2"])
        async with session_factory() as session:
            service = group_service(session, services)
            with pytest.raises(ValidationError):
                await service.leave_group(group_id, "owner")
            with pytest.raises(ValidationError):
                await service.leave_group(group_id, "outsider")
            await service.leave_group(group_id, "m1")
            _, members = await service.get_group(group_id, "owner")
        notes = await all_rows(session_factory, Notification)
        return members, sorted((n.user_id, n.type) for n in notes)

    members, notes = asyncio.run(scenario())

    assert members == ["owner", "m2"]
    assert notes == [("m2", "member_left"), ("owner", "member_left")]
