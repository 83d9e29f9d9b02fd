"""URL reachability probe used by the reconciler."""

import asyncio
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager

import httpx
import structlog

from api.config import Settings, get_settings

logger = structlog.get_logger(__name__)

# InvalidURL does not derive from HTTPError
_UNREACHABLE_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


class UrlProbe:
    """
    Checks whether URLs answer with a success status.

    Tries HEAD first and falls back to GET, since some servers reject HEAD.
    Batches run concurrently; batches themselves run one after another.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float = 5.0,
        batch_size: int = 5,
        user_agent: str = "Mozilla/5.0 (compatible; LaunchPilotBot/1.0)",
    ):
        self._client = client
        self.timeout = timeout
        self.batch_size = max(1, batch_size)
        self.headers = {"User-Agent": user_agent}

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "UrlProbe":
        settings = settings or get_settings()
        return cls(
            timeout=settings.probe_timeout_seconds,
            batch_size=settings.probe_batch_size,
            user_agent=settings.probe_user_agent,
        )

    async def _request_ok(self, client: httpx.AsyncClient, method: str, url: str) -> bool:
        response = await client.request(
            method, url, headers=self.headers, timeout=self.timeout, follow_redirects=True
        )
        return response.is_success

    async def _probe(self, client: httpx.AsyncClient, url: str) -> bool:
        try:
            if await self._request_ok(client, "HEAD", url):
                return True
        except _UNREACHABLE_ERRORS as e:
            logger.debug("probe_head_failed", url=url, error=str(e))
        try:
            return await self._request_ok(client, "GET", url)
        except _UNREACHABLE_ERRORS as e:
            logger.debug("probe_get_failed", url=url, error=str(e))
            return False

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
        else:
            async with httpx.AsyncClient() as client:
                yield client

    async def is_accessible(self, url: str) -> bool:
        async with self._session() as client:
            return await self._probe(client, url)

    async def check_many(self, urls: Iterable[str]) -> dict[str, bool]:
        """Probe URLs in batches of ``batch_size``. Duplicates are probed once."""
        unique = list(dict.fromkeys(urls))
        results: dict[str, bool] = {}
        async with self._session() as client:
            for start in range(0, len(unique), self.batch_size):
                batch = unique[start : start + self.batch_size]
                outcomes = await asyncio.gather(*(self._probe(client, url) for url in batch))
                results.update(zip(batch, outcomes, strict=True))
        return results
