"""
Activity router - group audit trail.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from groupwork.core.dependencies import Identity, Services, get_current_identity, get_group_service, get_services
from groupwork.schemas.activity import (
    ActivityListResponse,
    ActivityLogCreate,
    ActivityRead,
    ActivityResponse,
    ClearActivitiesResponse,
)
from groupwork.services.activity_log_service import enrich_activities, sort_newest_first
from groupwork.services.group_service import GroupService

router = APIRouter(prefix="/activities", tags=["activities"])


@router.post("/log", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
async def log_activity(
    data: ActivityLogCreate,
    identity: Identity = Depends(get_current_identity),
    groups: GroupService = Depends(get_group_service),
    services: Services = Depends(get_services),
):
    await groups.get_group(data.group_id, identity.uid)
    entry = await services.activity_log.log(data.group_id, identity.uid, data.action, data.details, data.metadata)
    return ActivityResponse(message="Activity logged", activity=ActivityRead.from_entry(entry))


@router.get("/group/{group_id}", response_model=ActivityListResponse)
async def list_group_activities(
    group_id: UUID,
    limit: Optional[int] = Query(None, ge=1, le=500),
    identity: Identity = Depends(get_current_identity),
    groups: GroupService = Depends(get_group_service),
    services: Services = Depends(get_services),
):
    """
    Recent activity of a group, newest first, with actor and assignee names.

    The limit is applied before sorting, so with more entries than `limit`
    the page is not guaranteed to hold the globally newest ones.
    """
    await groups.get_group(group_id, identity.uid)
    entries = await services.activity_log.list_by_group(
        group_id, limit or services.settings.ACTIVITIES_DEFAULT_LIMIT
    )
    activities = await enrich_activities(sort_newest_first(entries), services.user_directory)
    return ActivityListResponse(count=len(activities), activities=activities)


@router.delete("/group/{group_id}/clear", response_model=ClearActivitiesResponse)
async def clear_group_activities(
    group_id: UUID,
    identity: Identity = Depends(get_current_identity),
    groups: GroupService = Depends(get_group_service),
    services: Services = Depends(get_services),
):
    await groups.get_group(group_id, identity.uid)
    deleted = await services.activity_log.clear_group(group_id)
    message = "Activities cleared" if deleted else "No activities to clear"
    return ClearActivitiesResponse(message=message, deleted=deleted)
