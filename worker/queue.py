"""Job queue for background scans."""

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from functools import lru_cache
from typing import Any

import structlog
from redis import Redis
from rq import Callback, Queue
from rq.exceptions import NoSuchJobError
from rq.job import Job

from api.metrics import update_queue_size
from worker.redis import (
    JOB_RESULT_TTL,
    QUEUE_DEFAULT,
    QUEUE_HIGH,
    QUEUE_LOW,
    get_redis_connection_bytes,
)

logger = structlog.get_logger(__name__)


class JobStatus(StrEnum):
    """RQ job status values."""

    QUEUED = "queued"
    STARTED = "started"
    DEFERRED = "deferred"
    FINISHED = "finished"
    STOPPED = "stopped"
    SCHEDULED = "scheduled"
    FAILED = "failed"
    CANCELED = "canceled"


class QueuePriority(StrEnum):
    HIGH = "high"
    DEFAULT = "default"
    LOW = "low"


@dataclass
class JobInfo:
    """Job information wrapper."""

    id: str
    status: JobStatus
    created_at: datetime | None
    started_at: datetime | None
    ended_at: datetime | None
    result: Any | None
    error: str | None
    meta: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "result": self.result,
            "error": self.error,
            "meta": self.meta,
        }


def on_job_success(job: Job, _connection: object, result: object) -> None:
    logger.info("job_completed", job_id=job.id, func=job.func_name, result=str(result)[:100])


def on_job_failure(
    job: Job,
    _connection: object,
    _exc_type: type,
    exc_value: Exception,
    _traceback: object,
) -> None:
    logger.error("job_failed", job_id=job.id, func=job.func_name, error=str(exc_value))


class JobQueue:
    """Thin wrapper over the RQ queues used by LaunchPilot."""

    def __init__(self, connection: Redis | None = None) -> None:
        self._conn = connection or get_redis_connection_bytes()
        self._queues = {
            QueuePriority.HIGH: Queue(QUEUE_HIGH, connection=self._conn),
            QueuePriority.DEFAULT: Queue(QUEUE_DEFAULT, connection=self._conn),
            QueuePriority.LOW: Queue(QUEUE_LOW, connection=self._conn),
        }

    def get_queue(self, priority: QueuePriority = QueuePriority.DEFAULT) -> Queue:
        return self._queues[priority]

    def enqueue(
        self,
        func: Any,
        *args: Any,
        priority: QueuePriority = QueuePriority.DEFAULT,
        job_id: str | None = None,
        job_timeout: int = 600,
        result_ttl: int = JOB_RESULT_TTL,
        meta: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> Job:
        """
        Enqueue a job for background processing.

        Args:
            func: The function to execute
            *args: Positional arguments for the function
            priority: Queue priority (high, default, low)
            job_id: Optional custom job ID
            job_timeout: Job timeout in seconds
            result_ttl: How long to keep results
            meta: Additional metadata to store with job

        Returns:
            The enqueued RQ Job
        """
        queue = self.get_queue(priority)
        job = queue.enqueue(
            func,
            *args,
            job_id=job_id or str(uuid.uuid4()),
            job_timeout=job_timeout,
            result_ttl=result_ttl,
            meta=meta or {},
            on_success=Callback(on_job_success),
            on_failure=Callback(on_job_failure),
            **kwargs,
        )
        update_queue_size(queue.name, len(queue))
        return job

    def get_job(self, job_id: str) -> Job | None:
        try:
            return Job.fetch(job_id, connection=self._conn)
        except NoSuchJobError:
            return None

    def get_job_info(self, job_id: str) -> JobInfo | None:
        """Get job information by ID."""
        job = self.get_job(job_id)
        if job is None:
            return None

        status = JobStatus(job.get_status() or JobStatus.QUEUED)
        error = None
        if status == JobStatus.FAILED:
            latest = job.latest_result()
            error = latest.exc_string if latest is not None else None

        return JobInfo(
            id=job.id,
            status=status,
            created_at=job.created_at,
            started_at=job.started_at,
            ended_at=job.ended_at,
            result=job.return_value() if status == JobStatus.FINISHED else None,
            error=error,
            meta=job.meta or {},
        )


@lru_cache
def get_job_queue() -> JobQueue:
    return JobQueue()
