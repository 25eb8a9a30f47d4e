"""
Repository for User database operations.
"""

from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from groupwork.models.user import User


class UserRepository:
    """Repository for User operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: str) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_many(self, user_ids: Iterable[str]) -> List[User]:
        """Fetch all users whose id is in `user_ids`; missing ids are skipped."""
        ids = sorted({uid for uid in user_ids if uid})
        if not ids:
            return []
        result = await self.db.execute(select(User).where(User.id.in_(ids)))
        return list(result.scalars().all())

    async def ensure(self, user_id: str, email: Optional[str] = None) -> User:
        """Return the user row, creating a minimal one on first sight."""
        user = await self.get_by_id(user_id)
        if user is None:
            user = User(id=user_id, email=email)
            self.db.add(user)
            await self.db.flush()
        elif email and not user.email:
            user.email = email
            await self.db.flush()
        return user

    async def update(self, user: User, data: Dict[str, Any]) -> User:
        for field, value in data.items():
            setattr(user, field, value)
        await self.db.flush()
        await self.db.refresh(user)
        return user
