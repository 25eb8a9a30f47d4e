"""
User router - the caller's own profile.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from groupwork.core.dependencies import Identity, get_current_identity, get_db
from groupwork.errors import ValidationError
from groupwork.repositories.user_repository import UserRepository
from groupwork.schemas.user import ProfileResponse, UserProfileRead, UserProfileUpdate
from groupwork.utils.time import utc_now

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Return the caller's profile, creating a minimal record on first access."""
    user = await UserRepository(db).ensure(identity.uid, identity.email)
    await db.commit()
    return ProfileResponse(user=UserProfileRead.model_validate(user))


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    data: UserProfileUpdate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v}
    if not changes:
        raise ValidationError("No fields to update")

    repo = UserRepository(db)
    user = await repo.ensure(identity.uid, identity.email)
    changes["updated_at"] = utc_now()
    user = await repo.update(user, changes)
    await db.commit()
    return ProfileResponse(message="Profile updated successfully", user=UserProfileRead.model_validate(user))
