"""
Group router - roster management endpoints.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from groupwork.core.dependencies import Identity, get_current_identity, get_group_service
from groupwork.schemas.base import ApiResponse
from groupwork.schemas.group import (
    GroupCreate,
    GroupJoin,
    GroupListResponse,
    GroupRead,
    GroupResponse,
    GroupUpdate,
    MemberListResponse,
)
from groupwork.services.group_service import GroupService

router = APIRouter(prefix="/groups", tags=["groups"])


@router.post("", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(
    data: GroupCreate,
    identity: Identity = Depends(get_current_identity),
    service: GroupService = Depends(get_group_service),
):
    group, members = await service.create_group(identity.uid, data, email=identity.email)
    return GroupResponse(message="Group created successfully", group=GroupRead.from_group(group, members))


@router.get("/my-groups", response_model=GroupListResponse)
async def list_my_groups(
    identity: Identity = Depends(get_current_identity),
    service: GroupService = Depends(get_group_service),
):
    groups = [GroupRead.from_group(g, members) for g, members in await service.list_my_groups(identity.uid)]
    return GroupListResponse(count=len(groups), groups=groups)


@router.post("/join", response_model=GroupResponse)
async def join_group(
    data: GroupJoin,
    identity: Identity = Depends(get_current_identity),
    service: GroupService = Depends(get_group_service),
):
    group, members = await service.join_group(data.access_code, identity.uid, email=identity.email)
    return GroupResponse(message="Successfully joined group", group=GroupRead.from_group(group, members))


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(
    group_id: UUID,
    identity: Identity = Depends(get_current_identity),
    service: GroupService = Depends(get_group_service),
):
    group, members = await service.get_group(group_id, identity.uid)
    return GroupResponse(group=GroupRead.from_group(group, members))


@router.get("/{group_id}/members", response_model=MemberListResponse)
async def list_members(
    group_id: UUID,
    identity: Identity = Depends(get_current_identity),
    service: GroupService = Depends(get_group_service),
):
    members = await service.list_members(group_id, identity.uid)
    return MemberListResponse(count=len(members), members=members)


@router.put("/{group_id}", response_model=ApiResponse)
async def update_group(
    group_id: UUID,
    data: GroupUpdate,
    identity: Identity = Depends(get_current_identity),
    service: GroupService = Depends(get_group_service),
):
    await service.update_group(group_id, data, identity.uid)
    return ApiResponse(message="Group updated successfully")


@router.delete("/{group_id}", response_model=ApiResponse)
async def delete_group(
    group_id: UUID,
    identity: Identity = Depends(get_current_identity),
    service: GroupService = Depends(get_group_service),
):
    await service.delete_group(group_id, identity.uid)
    return ApiResponse(message="Group deleted successfully")


@router.post("/{group_id}/leave", response_model=ApiResponse)
async def leave_group(
    group_id: UUID,
    identity: Identity = Depends(get_current_identity),
    service: GroupService = Depends(get_group_service),
):
    await service.leave_group(group_id, identity.uid)
    return ApiResponse(message="Left group successfully")
