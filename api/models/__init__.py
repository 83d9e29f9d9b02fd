"""SQLAlchemy models package."""

from api.models.scan import Scan
from api.models.task import Task, TaskStatus

__all__ = [
    "Scan",
    "Task",
    "TaskStatus",
]
