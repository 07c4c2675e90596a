import asyncio
import logging
from typing import Coroutine, Optional, Set, Tuple

import aiohttp

log = logging.getLogger(__name__)

TEXT_PLAIN_HEADERS = {'Content-Type': 'text/plain'}

class HttpClient:
    """
    Shared aiohttp session plus a registry of in-flight request tasks.

    Requests are fire-and-forget: callers spawn a coroutine and return
    immediately. Completion code runs on the event loop that spawned it.
    """
    def __init__(self) -> None:
        self._session: Optional[aiohttp.ClientSession] = None
        self._tasks: Set[asyncio.Task] = set()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def request(self,
                      method: str,
                      url: str,
                      data: Optional[str] = None) -> Optional[Tuple[int, str]]:
        """
        Sends a request and returns (status, body).

        Returns None when no response was received. Transport errors are
        logged here and never propagate to the caller.
        """
        kwargs = {}
        if data is not None:
            kwargs['data'] = data
            kwargs['headers'] = TEXT_PLAIN_HEADERS

        log.debug(f'{method} {url}')
        try:
            session = self._get_session()
            async with session.request(method, url, **kwargs) as response:
                body = await response.text()
                return response.status, body
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            log.error(f'{method} {url} failed: {e!r}')
            return None

    async def drain(self) -> None:
        """Waits until every spawned request has completed."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        await self.drain()
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
