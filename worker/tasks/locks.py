"""Per-domain serialization of task writes.

Two scans of the same domain must never interleave their task updates.
Inside one process an ``asyncio.Lock`` per domain is enough; RQ runs every
job in its own work horse process, so deployments use the Redis backend.
"""

import asyncio
import weakref
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from functools import lru_cache

import structlog
from redis.asyncio import Redis as AsyncRedis

from api.config import Settings, get_settings

logger = structlog.get_logger(__name__)

LOCK_KEY_PREFIX = "launchpilot:task-sync:"


class DomainLockRegistry:
    """Hands out one lock per domain."""

    def __init__(
        self,
        redis_factory: Callable[[], AsyncRedis] | None = None,
        timeout_seconds: float = 60.0,
    ) -> None:
        self._redis_factory = redis_factory
        self._timeout = timeout_seconds
        # asyncio locks belong to one event loop; each job may run its own
        self._locks: weakref.WeakKeyDictionary[
            asyncio.AbstractEventLoop, dict[str, asyncio.Lock]
        ] = weakref.WeakKeyDictionary()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "DomainLockRegistry":
        settings = settings or get_settings()
        if settings.task_lock_backend == "redis":
            from worker.redis import get_async_redis

            return cls(
                redis_factory=get_async_redis,
                timeout_seconds=settings.task_lock_timeout_seconds,
            )
        return cls(timeout_seconds=settings.task_lock_timeout_seconds)

    @property
    def distributed(self) -> bool:
        return self._redis_factory is not None

    def _local_lock(self, domain: str) -> asyncio.Lock:
        locks = self._locks.setdefault(asyncio.get_running_loop(), {})
        return locks.setdefault(domain, asyncio.Lock())

    @asynccontextmanager
    async def hold(self, domain: str) -> AsyncIterator[None]:
        """Hold the lock for ``domain`` for the duration of the block."""
        if self._redis_factory is not None:
            redis = self._redis_factory()
            try:
                lock = redis.lock(
                    f"{LOCK_KEY_PREFIX}{domain}",
                    timeout=self._timeout,
                    blocking_timeout=self._timeout,
                )
                async with lock:
                    yield
            finally:
                await redis.aclose()
            return

        local = self._local_lock(domain)
        if local.locked():
            logger.debug("task_sync_waiting_for_lock", domain=domain)
        async with local:
            yield


@lru_cache
def get_domain_locks() -> DomainLockRegistry:
    """The process-wide lock registry."""
    return DomainLockRegistry.from_settings()
