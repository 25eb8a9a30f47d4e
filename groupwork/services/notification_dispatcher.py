"""
Notification dispatch.

NotificationDispatcher is the single place that writes notification rows.
Every write is a best-effort side effect: it runs in its own session, and a
storage failure is logged and reported as False, never raised.

Assignment notifications take a separate, deferred path: they run on the job
queue after the triggering response and are deduplicated per
(task, assignee) by AssignmentDedupCache.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from groupwork.models.enums import NotificationType
from groupwork.repositories.notification_repository import NotificationRepository
from groupwork.services.job_queue import JobQueue
from groupwork.services.user_directory import UserDirectory

logger = logging.getLogger(__name__)

DedupKey = Tuple[str, str]


class AssignmentDedupCache:
    """
    Last-sent times for assignment notifications, keyed by (task_id, assignee_id).

    `should_send` is an atomic check-and-set per key. A suppressed request does
    not refresh the stored time, so a steady stream of retries cannot starve a
    legitimate notification once the window has passed.

    Entries older than the window can no longer suppress anything; they are
    evicted whenever the cache grows past `max_entries`.
    """

    def __init__(
        self,
        window_ms: int = 300_000,
        max_entries: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window_ms = window_ms
        self.max_entries = max_entries
        self._clock = clock
        self._last_sent: Dict[DedupKey, float] = {}
        self._lock = threading.Lock()

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    def should_send(self, task_id: object, assignee_id: str) -> bool:
        key = (str(task_id), str(assignee_id))
        with self._lock:
            now = self._now_ms()
            last = self._last_sent.get(key)
            if last is not None and now - last < self.window_ms:
                return False
            self._last_sent[key] = now
            if len(self._last_sent) > self.max_entries:
                self._evict_expired(now)
            return True

    def _evict_expired(self, now: float) -> int:
        expired = [k for k, sent in self._last_sent.items() if now - sent >= self.window_ms]
        for k in expired:
            del self._last_sent[k]
        return len(expired)

    def evict_expired(self) -> int:
        with self._lock:
            return self._evict_expired(self._now_ms())

    def __len__(self) -> int:
        return len(self._last_sent)


@dataclass(frozen=True)
class AssignmentNotice:
    """Everything the deferred assignment notification needs, captured at request time."""

    task_id: uuid.UUID
    group_id: uuid.UUID
    title: str
    assignee_id: str
    assigner_id: str
    assigner_name: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[datetime] = None


def format_assignment_message(notice: AssignmentNotice, assigner_name: Optional[str]) -> str:
    due = notice.due_date.date().isoformat() if notice.due_date else "none"
    parts = [
        f'Task: "{notice.title}"',
        f"Assigned By: {assigner_name or 'someone'}",
        f"Priority: {notice.priority or 'medium'}",
        f"Due: {due}",
    ]
    return " | ".join(parts)


class NotificationDispatcher:
    """Creates per-user notifications on behalf of every call site."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        dedup_cache: AssignmentDedupCache,
        job_queue: JobQueue,
        user_directory: UserDirectory,
    ) -> None:
        self.session_factory = session_factory
        self.dedup_cache = dedup_cache
        self.job_queue = job_queue
        self.user_directory = user_directory

    async def notify(
        self,
        user_id: Optional[str],
        type: NotificationType,
        *,
        message: str = "",
        task_id: Optional[uuid.UUID] = None,
        group_id: Optional[uuid.UUID] = None,
        actor_id: Optional[str] = None,
    ) -> bool:
        """
        Write one notification. Returns True if a row was stored.

        Self-notification is dropped for every type except task_assigned,
        which lets a user assign a task to themselves and still see it.
        """
        if not user_id:
            return False
        if user_id == actor_id and type != NotificationType.TASK_ASSIGNED:
            return False
        try:
            async with self.session_factory() as session:
                repo = NotificationRepository(session)
                await repo.create(
                    user_id=user_id,
                    type=NotificationType(type).value,
                    message=message,
                    task_id=task_id,
                    group_id=group_id,
                    actor_id=actor_id,
                )
                await session.commit()
            return True
        except Exception as e:
            logger.warning("Notification %s for user %s failed: %s", type, user_id, e)
            return False

    def schedule_assignment(self, notice: AssignmentNotice) -> str:
        """Queue the deduplicated assignment notification; returns the job id."""
        return self.job_queue.submit(
            self.deliver_assignment,
            notice,
            name="assignment_notification",
            metadata={"task_id": str(notice.task_id), "assignee_id": notice.assignee_id},
        )

    async def deliver_assignment(self, notice: AssignmentNotice) -> bool:
        if not notice.assignee_id:
            return False
        if not self.dedup_cache.should_send(notice.task_id, notice.assignee_id):
            logger.info(
                "Suppressed duplicate assignment notification task=%s assignee=%s",
                notice.task_id,
                notice.assignee_id,
            )
            return False

        assigner_name = notice.assigner_name
        if not assigner_name and notice.assigner_id:
            names = await self.user_directory.display_names([notice.assigner_id])
            assigner_name = names.get(notice.assigner_id)

        return await self.notify(
            notice.assignee_id,
            NotificationType.TASK_ASSIGNED,
            message=format_assignment_message(notice, assigner_name),
            task_id=notice.task_id,
            group_id=notice.group_id,
            actor_id=notice.assigner_id,
        )
