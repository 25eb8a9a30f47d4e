"""
Dashboard router - overview, stats and feeds.
"""

from fastapi import APIRouter, Depends, Query

from groupwork.core.dependencies import Identity, Services, get_current_identity, get_services
from groupwork.schemas.activity import ActivityListResponse
from groupwork.schemas.dashboard import OverviewResponse, StatsResponse
from groupwork.schemas.task import TaskListResponse, TaskRead

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/overview", response_model=OverviewResponse)
async def get_overview(
    identity: Identity = Depends(get_current_identity),
    services: Services = Depends(get_services),
):
    """Everything the home screen needs in one call; partial data on partial failure."""
    return OverviewResponse(overview=await services.feed.build_overview(identity.uid))


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    identity: Identity = Depends(get_current_identity),
    services: Services = Depends(get_services),
):
    return StatsResponse(stats=await services.feed.stats(identity.uid))


@router.get("/recent-activities", response_model=ActivityListResponse)
async def get_recent_activities(
    limit: int = Query(10, ge=1, le=100),
    identity: Identity = Depends(get_current_identity),
    services: Services = Depends(get_services),
):
    activities = await services.feed.recent_activities(identity.uid, limit=limit)
    return ActivityListResponse(count=len(activities), activities=activities)


@router.get("/upcoming-deadlines", response_model=TaskListResponse)
async def get_upcoming_deadlines(
    days: int = Query(7, ge=1, le=365),
    identity: Identity = Depends(get_current_identity),
    services: Services = Depends(get_services),
):
    tasks = await services.feed.upcoming_deadlines(identity.uid, days=days)
    return TaskListResponse(count=len(tasks), tasks=[TaskRead.model_validate(t) for t in tasks])
