"""Task endpoints."""

import uuid

from fastapi import APIRouter

from api.deps import DbSession, TaskServiceDep
from api.models import TaskStatus
from api.schemas.responses import SuccessResponse
from api.schemas.task import TaskRead, TaskStatusUpdate

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.patch(
    "/{task_id}",
    response_model=SuccessResponse[TaskRead],
    summary="Mark a task completed or pending",
)
async def update_task_status(
    task_id: uuid.UUID,
    body: TaskStatusUpdate,
    db: DbSession,
    tasks: TaskServiceDep,
) -> SuccessResponse[TaskRead]:
    """
    Manual status change.

    A completed task is confirmed (``verified``) by the next scan that no
    longer reports it, or ``regressed`` if the scan still does.
    """
    task = await tasks.set_status(db, task_id, TaskStatus(body.status))
    return SuccessResponse(data=TaskRead.model_validate(task))
