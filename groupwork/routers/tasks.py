"""
Task router - API endpoints for tasks.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status

from groupwork.core.dependencies import Identity, get_current_identity, get_task_service
from groupwork.schemas.base import ApiResponse
from groupwork.schemas.task import TaskCreate, TaskListResponse, TaskRead, TaskResponse, TaskUpdate
from groupwork.services.task_service import TaskService

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _task_list(tasks) -> TaskListResponse:
    return TaskListResponse(count=len(tasks), tasks=[TaskRead.model_validate(t) for t in tasks])


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    data: TaskCreate,
    identity: Identity = Depends(get_current_identity),
    service: TaskService = Depends(get_task_service),
):
    """Create a task in a group the caller belongs to."""
    task = await service.create_task(identity.uid, data)
    return TaskResponse(message="Task created successfully", task=TaskRead.model_validate(task))


@router.get("/my-tasks", response_model=TaskListResponse)
async def list_my_tasks(
    status: Optional[str] = None,
    identity: Identity = Depends(get_current_identity),
    service: TaskService = Depends(get_task_service),
):
    """Tasks assigned to or by the caller, earliest due date first."""
    return _task_list(await service.list_my_tasks(identity.uid, status))


@router.get("/group/{group_id}", response_model=TaskListResponse)
async def list_group_tasks(
    group_id: UUID,
    status: Optional[str] = None,
    identity: Identity = Depends(get_current_identity),
    service: TaskService = Depends(get_task_service),
):
    return _task_list(await service.list_group_tasks(group_id, identity.uid, status))


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: UUID,
    identity: Identity = Depends(get_current_identity),
    service: TaskService = Depends(get_task_service),
):
    task = await service.get_task(task_id, identity.uid)
    return TaskResponse(task=TaskRead.model_validate(task))


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: UUID,
    data: TaskUpdate,
    identity: Identity = Depends(get_current_identity),
    service: TaskService = Depends(get_task_service),
):
    """
    Partially update a task.

    Only the fields present in the body are applied; sending
    "assigned_to": null unassigns the task.
    """
    task = await service.update_task(task_id, data.model_dump(exclude_unset=True), identity.uid)
    return TaskResponse(message="Task updated successfully", task=TaskRead.model_validate(task))


@router.delete("/{task_id}", response_model=ApiResponse)
async def delete_task(
    task_id: UUID,
    identity: Identity = Depends(get_current_identity),
    service: TaskService = Depends(get_task_service),
):
    await service.delete_task(task_id, identity.uid)
    return ApiResponse(message="Task deleted successfully")
