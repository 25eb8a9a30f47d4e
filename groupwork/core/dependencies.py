"""
FastAPI dependencies for the application.
"""

from dataclasses import dataclass
from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from groupwork.core.config import Settings, settings
from groupwork.errors import AuthenticationError
from groupwork.services.activity_log_service import ActivityLogService
from groupwork.services.fanout import FanOutCoordinator
from groupwork.services.feed_service import FeedAggregator
from groupwork.services.group_service import GroupService
from groupwork.services.job_queue import JobQueue
from groupwork.services.notification_dispatcher import AssignmentDedupCache, NotificationDispatcher
from groupwork.services.notification_service import NotificationService
from groupwork.services.task_service import TaskService
from groupwork.services.user_directory import UserDirectory

# Security scheme for JWT bearer tokens; missing headers are reported by us as 401
security = HTTPBearer(auto_error=False)


@dataclass
class Services:
    """Process-wide collaborators shared by every request."""

    settings: Settings
    session_factory: async_sessionmaker[AsyncSession]
    job_queue: JobQueue
    dedup_cache: AssignmentDedupCache
    user_directory: UserDirectory
    dispatcher: NotificationDispatcher
    fanout: FanOutCoordinator
    activity_log: ActivityLogService
    feed: FeedAggregator


def build_services(session_factory: async_sessionmaker[AsyncSession], config: Settings = settings) -> Services:
    job_queue = JobQueue()
    dedup_cache = AssignmentDedupCache(
        window_ms=config.ASSIGNMENT_DEDUP_MS,
        max_entries=config.ASSIGNMENT_DEDUP_MAX_ENTRIES,
    )
    user_directory = UserDirectory(session_factory)
    dispatcher = NotificationDispatcher(session_factory, dedup_cache, job_queue, user_directory)
    activity_log = ActivityLogService(session_factory, clear_batch_size=config.ACTIVITY_CLEAR_BATCH_SIZE)
    return Services(
        settings=config,
        session_factory=session_factory,
        job_queue=job_queue,
        dedup_cache=dedup_cache,
        user_directory=user_directory,
        dispatcher=dispatcher,
        fanout=FanOutCoordinator(dispatcher),
        activity_log=activity_log,
        feed=FeedAggregator(
            session_factory,
            user_directory,
            activity_log,
            notifications_limit=config.NOTIFICATIONS_LIST_LIMIT,
            activities_per_group=config.OVERVIEW_ACTIVITIES_PER_GROUP,
        ),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


async def get_db(services: Services = Depends(get_services)) -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get the request's database session."""
    async with services.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


@dataclass(frozen=True)
class Identity:
    """The verified caller. Tokens are issued elsewhere; claims are trusted as-is."""

    uid: str
    email: Optional[str] = None


def decode_identity(token: str, config: Settings) -> Identity:
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except ExpiredSignatureError:
        raise AuthenticationError("Token has expired") from None
    except JWTError:
        raise AuthenticationError("Invalid authentication credentials") from None

    uid = payload.get("sub")
    if not uid:
        raise AuthenticationError("Invalid token payload")
    return Identity(uid=str(uid), email=payload.get("email"))


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    services: Services = Depends(get_services),
) -> Identity:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authenticated")
    return decode_identity(credentials.credentials, services.settings)


def get_task_service(db: AsyncSession = Depends(get_db), services: Services = Depends(get_services)) -> TaskService:
    return TaskService(db, services.dispatcher, services.fanout, services.activity_log, services.user_directory)


def get_group_service(db: AsyncSession = Depends(get_db), services: Services = Depends(get_services)) -> GroupService:
    return GroupService(
        db,
        services.fanout,
        services.activity_log,
        members_limit=services.settings.GROUP_MEMBERS_LIMIT,
    )


def get_notification_service(
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
) -> NotificationService:
    return NotificationService(
        db,
        list_limit=services.settings.NOTIFICATIONS_LIST_LIMIT,
        clear_batch_size=services.settings.NOTIFICATION_CLEAR_BATCH_SIZE,
    )
