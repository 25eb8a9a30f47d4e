"""
Best-effort user lookups used for display-name enrichment.

Lookups never raise: an id that cannot be resolved, for whatever reason,
maps to None.
"""

import logging
from typing import Dict, Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from groupwork.models.user import User
from groupwork.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class UserDirectory:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def display_names(self, user_ids: Iterable[Optional[str]]) -> Dict[str, Optional[str]]:
        """Map every given id to a display name, or None when unresolved."""
        ids = {uid for uid in user_ids if uid}
        names: Dict[str, Optional[str]] = {uid: None for uid in ids}
        if not ids:
            return names
        try:
            async with self.session_factory() as session:
                users = await UserRepository(session).get_many(ids)
        except Exception as e:
            logger.warning("User name lookup failed for %d ids: %s", len(ids), e)
            return names
        for user in users:
            names[user.id] = user.display_name
        return names

    async def get_profile(self, user_id: str) -> Optional[User]:
        try:
            async with self.session_factory() as session:
                return await UserRepository(session).get_by_id(user_id)
        except Exception as e:
            logger.warning("Profile lookup failed for %s: %s", user_id, e)
            return None
