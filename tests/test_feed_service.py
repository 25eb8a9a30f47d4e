import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from conftest import seed_group, seed_task, seed_users
from groupwork.models.enums import ActivityAction, NotificationType
from groupwork.repositories.notification_repository import NotificationRepository
from groupwork.schemas.dashboard import DashboardStats
from groupwork.services.feed_service import compute_stats

pytestmark = pytest.mark.db


def test_overview_for_user_without_groups(services, session_factory):
    async def scenario():
        await seed_users(session_factory, "loner")
        return await services.feed.build_overview("loner")

    overview = asyncio.run(scenario())

    assert overview.user.uid == "loner"
    assert overview.groups == []
    assert overview.stats == DashboardStats()
    assert overview.stats.completion_rate == 0
    assert overview.notifications == []
    assert overview.activities == []


def test_overview_stats_notifications_and_activities(services, session_factory):
    async def scenario():
        await seed_users(session_factory, "u1", "u2")
        group_id = await seed_group(session_factory, "u1", ["u2"])
        await seed_task(session_factory, group_id, assigned_by="u1", assigned_to="u2")
        await seed_task(session_factory, group_id, assigned_by="u1", assigned_to="u2", status="In Progress", progress=50)
        await seed_task(session_factory, group_id, assigned_by="u1", status="Done", progress=100)
        for i in range(7):
            await services.activity_log.append(group_id, "u1", ActivityAction.NOTE, f"note {i}")
        await services.activity_log.append(
            group_id, "u1", ActivityAction.TASK_ASSIGNED, "Assigned", {"assigneeId": "u2"}
        )
        await services.dispatcher.notify("u2", NotificationType.TASK_STATUS, message="first", actor_id="u1")
        await services.dispatcher.notify("u2", NotificationType.TASK_PROGRESS, message="second", actor_id="u1")
        async with session_factory() as session:
            repo = NotificationRepository(session)
            [first] = [n for n in await repo.list_for_user("u2") if n.message == "first"]
            await repo.mark_read(first, datetime.now(timezone.utc))
            await session.commit()
        return await services.feed.build_overview("u2")

    overview = asyncio.run(scenario())

    assert len(overview.groups) == 1
    assert sorted(overview.groups[0].members) == ["u1", "u2"]
    assert overview.stats.total_groups == 1
    assert overview.stats.total_tasks == 3
    assert overview.stats.pending_tasks == 1
    assert overview.stats.in_progress_tasks == 1
    assert overview.stats.completed_tasks == 1
    assert overview.stats.my_tasks == 2
    assert overview.stats.completion_rate == 33
    # unread first
    assert [n.message for n in overview.notifications] == ["second", "first"]
    assert len(overview.activities) == 5
    for activity in overview.activities:
        assert activity.actor_name == "U1"


def test_overview_degrades_per_section(services, session_factory, monkeypatch):
    async def broken(*args, **kwargs):
        raise RuntimeError("index missing")

    async def scenario():
        await seed_users(session_factory, "u1")
        group_id = await seed_group(session_factory, "u1")
        await seed_task(session_factory, group_id, assigned_by="u1", assigned_to="u1")
        await services.activity_log.append(group_id, "u1", ActivityAction.NOTE, "hello")
        monkeypatch.setattr(services.feed, "_notifications", broken)
        monkeypatch.setattr(services.feed, "_group_tasks", broken)
        return await services.feed.build_overview("u1")

    overview = asyncio.run(scenario())

    assert len(overview.groups) == 1
    assert overview.notifications == []
    assert overview.stats == DashboardStats(total_groups=1)
    assert [a.details for a in overview.activities] == ["hello"]


def test_completion_rate_rounds():
    class T:
        def __init__(self, status, assigned_to=None):
            self.status = status
            self.assigned_to = assigned_to

    tasks = [T("Done"), T("Done"), T("To Do")]

    assert compute_stats(1, tasks, "me").completion_rate == 67
    assert compute_stats(0, [], "me").completion_rate == 0


def test_upcoming_deadlines_window(services, session_factory):
    now = datetime.now(timezone.utc)

    async def scenario():
        group_id = await seed_group(session_factory, "u1", ["u2"])
        for title, days, status in [
            ("tomorrow", 1, "To Do"),
            ("in three days", 3, "In Progress"),
            ("next month", 30, "To Do"),
            ("finished", 2, "Done"),
            ("overdue", -1, "To Do"),
        ]:
            await seed_task(
                session_factory,
                group_id,
                assigned_by="u1",
                assigned_to="u2",
                title=title,
                status=status,
                due_date=now + timedelta(days=days),
            )
        return await services.feed.upcoming_deadlines("u2", days=7)

    assert [t.title for t in asyncio.run(scenario())] == ["tomorrow", "in three days"]


def test_recent_activities_across_groups(services, session_factory):
    async def scenario():
        first = await seed_group(session_factory, "u1", name="First")
        second = await seed_group(session_factory, "u1", name="Second")
        for group_id in (first, second):
            for i in range(3):
                await services.activity_log.append(group_id, "u1", ActivityAction.NOTE, f"{group_id}-{i}")
        return await services.feed.recent_activities("u1", limit=4)

    activities = asyncio.run(scenario())

    assert len(activities) == 4
    timestamps = [a.timestamp for a in activities]
    assert timestamps == sorted(timestamps, reverse=True)
