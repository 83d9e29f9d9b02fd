"""RQ Worker entrypoint."""

import os
import platform

import structlog
from rq import SimpleWorker, Worker

from api.config import get_settings
from api.logging import setup_logging
from api.sentry import init_sentry
from worker.collectors.base import load_collector_suite
from worker.redis import (
    QUEUE_DEFAULT,
    QUEUE_HIGH,
    QUEUE_LOW,
    get_redis_connection_bytes,
)

logger = structlog.get_logger(__name__)


def run_worker() -> None:
    """Start the RQ worker."""
    settings = get_settings()
    setup_logging()
    init_sentry()

    queues = [QUEUE_HIGH, QUEUE_DEFAULT, QUEUE_LOW]
    logger.info("worker_starting", env=settings.env, queues=queues)

    # Fail at startup rather than on the first job
    load_collector_suite(settings)

    # Use SimpleWorker on Windows (no os.fork() support)
    worker_class = SimpleWorker if platform.system() == "Windows" else Worker

    worker = worker_class(
        queues,
        connection=get_redis_connection_bytes(),
        name=f"launchpilot-worker-{os.getpid()}",
    )
    worker.work(logging_level=settings.log_level)


if __name__ == "__main__":
    run_worker()
