from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from pydantic import BaseModel, Field

from ..auth import get_current_user
from ..errors import InvalidQuery
from ..filtering import ALL, TaskQuery
from ..models import Priority, TaskStatus, UserEntity
from ..schemas import StatsOut, TaskCreate, TaskOut, TaskReplace, TaskUpdate, ToggleComplete
from ..services import TaskService, get_task_service

router = APIRouter(
    prefix="/api/v1/tasks",
    tags=["tasks"],
)

_STATUS_VALUES = {ALL, *(s.value for s in TaskStatus)}
_PRIORITY_VALUES = {ALL, *(p.value for p in Priority)}


class PaginationEnvelope(BaseModel):
    """
    Envelope for paginated list responses.
    """
    items: List[TaskOut] = Field(..., description="Tasks on this page")
    total: int = Field(..., description="Total number of tasks matching the filters")
    limit: int = Field(..., description="Limit applied to the query")
    offset: int = Field(..., description="Offset applied to the query")


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=PaginationEnvelope,
    summary="List Tasks",
    description=(
        "List tasks assigned to the current user, ordered by due date.\n\n"
        "Query parameters:\n"
        "- status: all, done, missed, due-today or upcoming\n"
        "- priority: all, low, medium or high\n"
        "- q: case-insensitive search in title/description\n"
        "- limit: max number of items to return (0..1000)\n"
        "- offset: number of items to skip (>=0)"
    ),
    responses={
        200: {"description": "List retrieved successfully"},
        400: {"description": "Invalid query parameters"},
    },
)
def list_tasks(
    status_filter: str = Query(ALL, alias="status", description="Filter by derived status"),
    priority: str = Query(ALL, description="Filter by priority"),
    q: Optional[str] = Query(None, description="Search text for title/description"),
    limit: int = Query(50, ge=0, le=1000, description="Maximum number of items to return"),
    offset: int = Query(0, ge=0, description="Number of items to skip"),
    current_user: UserEntity = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> PaginationEnvelope:
    status_norm = status_filter.strip().lower()
    if status_norm not in _STATUS_VALUES:
        raise InvalidQuery("status must be one of: all, done, missed, due-today, upcoming")
    priority_norm = priority.strip().lower()
    if priority_norm not in _PRIORITY_VALUES:
        raise InvalidQuery("priority must be one of: all, low, medium, high")

    query = TaskQuery(
        status=status_norm,
        priority=priority_norm,
        search=q.strip() if q else None,
        limit=limit,
        offset=offset,
    )
    items, total = service.list_tasks(current_user["id"], query)
    return PaginationEnvelope(
        items=[TaskOut(**service.present(t)) for t in items],
        total=total,
        limit=limit,
        offset=offset,
    )


# PUBLIC_INTERFACE
@router.get(
    "/stats",
    response_model=StatsOut,
    summary="Task Statistics",
    description="Counts of total, done, missed and due-today tasks assigned to the current user.",
)
def task_stats(
    current_user: UserEntity = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> StatsOut:
    return StatsOut(**service.stats(current_user["id"]).as_dict())


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a task and assign it to an existing user by email. The creator is the current user.",
    responses={
        201: {"description": "Task created successfully"},
        404: {"description": "Assignee not found"},
        422: {"description": "Validation error"},
    },
)
def create_task(
    payload: TaskCreate,
    current_user: UserEntity = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskOut:
    created = service.create_task(current_user["id"], payload)
    return TaskOut(**service.present(created))


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=TaskOut,
    summary="Get Task",
    description="Get a single task. Only its assignee may read it.",
    responses={
        200: {"description": "Task found"},
        403: {"description": "Not the assignee"},
        404: {"description": "Task not found"},
    },
)
def get_task(
    task_id: int,
    current_user: UserEntity = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskOut:
    task = service.get_task(current_user["id"], task_id)
    return TaskOut(**service.present(task))


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}",
    response_model=TaskOut,
    summary="Replace Task",
    description=(
        "Replace title, description, due date and priority of a task. "
        "Omitted description/priority are reset to empty/medium. Assignee only."
    ),
    responses={
        200: {"description": "Task updated"},
        403: {"description": "Not the assignee"},
        404: {"description": "Task not found"},
    },
)
def put_task(
    task_id: int,
    payload: TaskReplace,
    current_user: UserEntity = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskOut:
    updated = service.replace_task(current_user["id"], task_id, payload)
    return TaskOut(**service.present(updated))


# PUBLIC_INTERFACE
@router.patch(
    "/{task_id}",
    response_model=TaskOut,
    summary="Update Task",
    description="Partially update a task, including its completion flag. Assignee only.",
    responses={
        200: {"description": "Task updated"},
        403: {"description": "Not the assignee"},
        404: {"description": "Task not found"},
    },
)
def patch_task(
    task_id: int,
    payload: TaskUpdate,
    current_user: UserEntity = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskOut:
    updated = service.update_task(current_user["id"], task_id, payload)
    return TaskOut(**service.present(updated))


# PUBLIC_INTERFACE
@router.post(
    "/{task_id}/toggle-complete",
    response_model=TaskOut,
    summary="Toggle Completion",
    description=(
        "Mark a task complete or incomplete. With a body {\"is_completed\": bool} the flag is set; "
        "without one it is flipped. Assignee only."
    ),
    responses={
        200: {"description": "Completion updated"},
        403: {"description": "Not the assignee"},
        404: {"description": "Task not found"},
    },
)
def toggle_complete(
    task_id: int,
    payload: Optional[ToggleComplete] = Body(default=None),
    current_user: UserEntity = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskOut:
    target = payload.is_completed if payload else None
    updated = service.toggle_complete(current_user["id"], task_id, target)
    return TaskOut(**service.present(updated))


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Task",
    description="Delete a task. Its assignee or its creator may delete it.",
    responses={
        204: {"description": "Task deleted"},
        403: {"description": "Neither assignee nor creator"},
        404: {"description": "Task not found"},
    },
)
def delete_task(
    task_id: int,
    current_user: UserEntity = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> None:
    service.delete_task(current_user["id"], task_id)
    return None
