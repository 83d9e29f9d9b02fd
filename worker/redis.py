"""Redis connections for the job queue, readiness checks and task locks."""

from functools import lru_cache

from redis import ConnectionPool, Redis
from redis.asyncio import Redis as AsyncRedis

from api.config import get_settings

QUEUE_HIGH = "launchpilot-high"
QUEUE_DEFAULT = "launchpilot-default"
QUEUE_LOW = "launchpilot-low"

# Scan results stay readable through GET /v1/jobs for a week
JOB_RESULT_TTL = 60 * 60 * 24 * 7


@lru_cache
def get_redis_pool(decode_responses: bool = True) -> ConnectionPool:
    """
    Cached connection pool per response mode.

    RQ pickles job payloads, so its connections must not decode responses.
    """
    return ConnectionPool.from_url(
        str(get_settings().redis_url),
        decode_responses=decode_responses,
        max_connections=10,
    )


def get_redis_connection() -> Redis:
    return Redis(connection_pool=get_redis_pool(True))


def get_redis_connection_bytes() -> Redis:
    """Connection for RQ queues and workers."""
    return Redis(connection_pool=get_redis_pool(False))


def get_async_redis() -> AsyncRedis:
    """Asyncio client for distributed task-sync locks."""
    return AsyncRedis.from_url(str(get_settings().redis_url), decode_responses=True)
