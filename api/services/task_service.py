"""Task service: SQL task store for scan sync and manual status changes."""

import uuid
from collections.abc import Callable, Sequence
from datetime import UTC, datetime

import structlog
from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from api.database import async_session_maker
from api.exceptions import NotFoundError, ValidationError
from api.models import Task, TaskStatus
from worker.tasks.task_sync import ExistingTask, TaskChange, TaskDraft

logger = structlog.get_logger(__name__)

# Statuses a user may set by hand
MANUAL_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.PENDING})


class SqlTaskStore:
    """TaskStore backed by the ``tasks`` table. Each call is its own transaction."""

    def __init__(self, session_factory: Callable[[], AsyncSession] | None = None) -> None:
        self._session_factory = session_factory or async_session_maker

    async def list_tasks(self, domain: str) -> list[ExistingTask]:
        async with self._session_factory() as db:
            result = await db.execute(
                select(Task.id, Task.recommendation_key, Task.category, Task.status).where(
                    Task.domain == domain
                )
            )
            return [
                ExistingTask(
                    id=row.id,
                    recommendation_key=row.recommendation_key,
                    category=row.category,
                    status=TaskStatus(row.status),
                )
                for row in result
            ]

    async def insert_tasks(
        self, domain: str, drafts: Sequence[TaskDraft], scan_id: uuid.UUID | None
    ) -> int:
        if not drafts:
            return 0
        rows = [
            {
                "id": uuid.uuid4(),
                "domain": domain,
                "category": draft.category,
                "recommendation_key": draft.recommendation_key,
                "title": draft.title,
                "description": draft.description,
                "how_to": draft.how_to,
                "effort": draft.effort,
                "priority": draft.priority,
                "status": TaskStatus.PENDING.value,
                "last_seen_scan_id": scan_id,
            }
            for draft in drafts
        ]
        stmt = (
            insert(Task)
            .values(rows)
            .on_conflict_do_nothing(index_elements=["domain", "recommendation_key"])
            .returning(Task.id)
        )
        async with self._session_factory() as db:
            result = await db.execute(stmt)
            inserted = len(result.all())
            await db.commit()
        return inserted

    async def update_task(self, change: TaskChange) -> None:
        async with self._session_factory() as db:
            await db.execute(update(Task).where(Task.id == change.task_id).values(**change.values))
            await db.commit()


class TaskService:
    """Service for task reads and user-driven status changes."""

    async def list_tasks(self, db: AsyncSession, domain: str) -> list[Task]:
        """Tasks of a domain, oldest first."""
        result = await db.execute(
            select(Task).where(Task.domain == domain).order_by(Task.created_at, Task.id)
        )
        return list(result.scalars().all())

    async def get_task(self, db: AsyncSession, task_id: uuid.UUID) -> Task:
        task = await db.get(Task, task_id)
        if task is None:
            raise NotFoundError("Task", str(task_id))
        return task

    async def set_status(
        self,
        db: AsyncSession,
        task_id: uuid.UUID,
        status: TaskStatus,
    ) -> Task:
        """
        Mark a task completed or back to pending.

        Allowed from any current status. Completing sets ``completed_at``;
        reopening clears it. Verified and regressed are reserved for scans.
        """
        if status not in MANUAL_STATUSES:
            raise ValidationError(
                f"Status '{status}' cannot be set manually", field="status"
            )

        task = await self.get_task(db, task_id)
        previous = task.status
        task.status = status.value
        task.completed_at = datetime.now(UTC) if status == TaskStatus.COMPLETED else None
        await db.flush()

        logger.info(
            "task_status_changed",
            task_id=str(task_id),
            domain=task.domain,
            previous=previous,
            status=status.value,
        )
        return task


task_service = TaskService()
