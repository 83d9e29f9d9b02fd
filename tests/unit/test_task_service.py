"""Tests for manual task status changes."""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from api.exceptions import NotFoundError, ValidationError
from api.models import Task, TaskStatus
from api.services.task_service import TaskService


def make_task(status: TaskStatus) -> Task:
    return Task(
        id=uuid.uuid4(),
        domain="example.com",
        category="seo",
        recommendation_key="seo::sitemap-olustur",
        title="Sitemap oluştur",
        effort="Kolay",
        priority="high",
        status=status.value,
    )


@pytest.fixture
def db() -> MagicMock:
    session = MagicMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    return session


class TestSetStatus:
    """Tests for TaskService.set_status."""

    async def test_complete_task(self, db):
        task = make_task(TaskStatus.PENDING)
        db.get.return_value = task

        updated = await TaskService().set_status(db, task.id, TaskStatus.COMPLETED)

        assert updated.status == "completed"
        assert updated.completed_at is not None
        db.flush.assert_awaited_once()

    async def test_reopen_task(self, db):
        task = make_task(TaskStatus.REGRESSED)
        db.get.return_value = task

        updated = await TaskService().set_status(db, task.id, TaskStatus.PENDING)

        assert updated.status == "pending"
        assert updated.completed_at is None

    @pytest.mark.parametrize("status", [TaskStatus.VERIFIED, TaskStatus.REGRESSED])
    async def test_scan_only_statuses_rejected(self, db, status):
        with pytest.raises(ValidationError):
            await TaskService().set_status(db, uuid.uuid4(), status)
        db.get.assert_not_called()

    async def test_unknown_task(self, db):
        db.get.return_value = None

        with pytest.raises(NotFoundError):
            await TaskService().set_status(db, uuid.uuid4(), TaskStatus.COMPLETED)
