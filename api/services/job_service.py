"""Job service for managing background scans from the API."""

from api.config import get_settings
from worker.queue import JobInfo, JobQueue, QueuePriority, get_job_queue
from worker.tasks.scan import domain_for, normalize_url, run_scan_job


class JobService:
    """Service for managing background jobs."""

    def __init__(self, queue: JobQueue | None = None):
        self._queue = queue

    @property
    def queue(self) -> JobQueue:
        if self._queue is None:
            self._queue = get_job_queue()
        return self._queue

    def enqueue_scan(
        self,
        url: str,
        priority: QueuePriority = QueuePriority.DEFAULT,
    ) -> tuple[str, str]:
        """
        Enqueue a scan of ``url``.

        Returns:
            (job id, scanned domain)

        Raises:
            InvalidScanTargetError: If the URL cannot be parsed
        """
        normalized = normalize_url(url)
        domain = domain_for(normalized)
        job = self.queue.enqueue(
            run_scan_job,
            normalized,
            priority=priority,
            job_timeout=get_settings().scan_job_timeout_seconds,
            meta={"url": normalized, "domain": domain},
        )
        return job.id, domain

    def get_job_status(self, job_id: str) -> JobInfo | None:
        return self.queue.get_job_info(job_id)


# Singleton instance
job_service = JobService()
