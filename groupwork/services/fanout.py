"""
Fan-out of one notification to a group roster.

Deliveries run concurrently and independently. The dispatcher never raises,
so one member's failed write cannot cancel the others; the caller only learns
how many were stored.
"""

import asyncio
import logging
import uuid
from typing import Iterable, Optional

from groupwork.models.enums import NotificationType
from groupwork.services.notification_dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)


class FanOutCoordinator:
    def __init__(self, dispatcher: NotificationDispatcher) -> None:
        self.dispatcher = dispatcher

    async def broadcast(
        self,
        member_ids: Iterable[str],
        type: NotificationType,
        *,
        exclude: Iterable[Optional[str]] = (),
        message: str = "",
        task_id: Optional[uuid.UUID] = None,
        group_id: Optional[uuid.UUID] = None,
        actor_id: Optional[str] = None,
    ) -> int:
        """Notify every member not in `exclude`; returns the number delivered."""
        excluded = {e for e in exclude if e}
        recipients = []
        for member_id in member_ids:
            if member_id and member_id not in excluded and member_id not in recipients:
                recipients.append(member_id)
        if not recipients:
            return 0

        results = await asyncio.gather(
            *(
                self.dispatcher.notify(
                    member_id,
                    type,
                    message=message,
                    task_id=task_id,
                    group_id=group_id,
                    actor_id=actor_id,
                )
                for member_id in recipients
            ),
            return_exceptions=True,
        )
        delivered = sum(1 for r in results if r is True)
        if delivered < len(recipients):
            logger.warning(
                "Broadcast %s delivered to %d of %d members (group=%s)",
                type.value,
                delivered,
                len(recipients),
                group_id,
            )
        return delivered
