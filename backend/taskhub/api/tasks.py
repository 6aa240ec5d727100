"""Task CRUD endpoints backed by the caller's in-memory task collection."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from taskhub.api.deps import TASK_COLLECTION_DEP, get_task_or_404
from taskhub.core.logging import get_logger
from taskhub.schemas.common import OkResponse
from taskhub.schemas.errors import ErrorResponse
from taskhub.schemas.tasks import (
    TaskCreate,
    TaskFilters,
    TaskListResponse,
    TaskRead,
    TaskStats,
    TaskUpdate,
)
from taskhub.services.task_collection import TaskCollection
from taskhub.services.task_query import compute_task_stats, filter_and_sort_tasks

router = APIRouter(prefix="/tasks", tags=["tasks"])
logger = get_logger(__name__)
TASK_DEP = Depends(get_task_or_404)
PERSISTENCE_ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    status.HTTP_502_BAD_GATEWAY: {
        "model": ErrorResponse,
        "description": "The task store rejected or failed the operation.",
    },
}


def _list_response(collection: TaskCollection, filters: TaskFilters) -> TaskListResponse:
    tasks = collection.tasks
    return TaskListResponse(
        items=filter_and_sort_tasks(tasks, filters),
        stats=compute_task_stats(tasks),
        loading=collection.loading,
        error=collection.error,
    )


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    filters: Annotated[TaskFilters, Query()],
    collection: TaskCollection = TASK_COLLECTION_DEP,
) -> TaskListResponse:
    """List the caller's tasks filtered and sorted, with collection-wide statistics."""
    return _list_response(collection, filters)


@router.get("/stats", response_model=TaskStats)
async def task_stats(collection: TaskCollection = TASK_COLLECTION_DEP) -> TaskStats:
    """Return total, completed, pending and overdue counts."""
    return compute_task_stats(collection.tasks)


@router.post("/refresh", response_model=TaskListResponse)
async def refresh_tasks(collection: TaskCollection = TASK_COLLECTION_DEP) -> TaskListResponse:
    """Reload the caller's tasks from the store.

    A failed reload keeps the previous list and reports the failure in `error`.
    """
    await collection.refresh()
    return _list_response(collection, TaskFilters())


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(task: TaskRead = TASK_DEP) -> TaskRead:
    """Get one of the caller's tasks by id."""
    return task


@router.post("", response_model=TaskRead, responses=PERSISTENCE_ERROR_RESPONSES)
async def create_task(
    payload: TaskCreate,
    collection: TaskCollection = TASK_COLLECTION_DEP,
) -> TaskRead:
    """Create a task owned by the caller."""
    task = await collection.create(payload)
    logger.info("tasks.api.create owner_id=%s task_id=%s", collection.owner_id, task.id)
    return task


@router.patch("/{task_id}", response_model=TaskRead, responses=PERSISTENCE_ERROR_RESPONSES)
async def update_task(
    payload: TaskUpdate,
    task: TaskRead = TASK_DEP,
    collection: TaskCollection = TASK_COLLECTION_DEP,
) -> TaskRead:
    """Apply a partial update; omitted fields are left untouched."""
    return await collection.update(task.id, payload)


@router.delete("/{task_id}", response_model=OkResponse, responses=PERSISTENCE_ERROR_RESPONSES)
async def delete_task(
    task: TaskRead = TASK_DEP,
    collection: TaskCollection = TASK_COLLECTION_DEP,
) -> OkResponse:
    """Delete one of the caller's tasks."""
    await collection.delete(task.id)
    return OkResponse()
