import asyncio
import logging
from typing import Optional

from portaria.utils.http_client import HttpClient
from portaria.utils.result_log import ResultLog

log = logging.getLogger(__name__)


class ConnectionMonitor:
    """
    Tracks whether the remote controller is reachable.

    The only way into the connected state is a successful status probe;
    changing the endpoint always falls back to disconnected.
    """
    def __init__(self, http: HttpClient, result_log: ResultLog, server_endpoint: str = ''):
        self._http = http
        self._result_log = result_log
        self._server_endpoint: str = server_endpoint
        self._connected: bool = False
        self.status_text: str = ''

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def server_endpoint(self) -> str:
        return self._server_endpoint

    @server_endpoint.setter
    def server_endpoint(self, value: str) -> None:
        self._server_endpoint = value
        self.reset()

    def reset(self) -> None:
        if self._connected:
            log.info('Connection reset. Waiting for next status probe.')
        self._connected = False
        self.status_text = ''

    def probe(self) -> Optional[asyncio.Task]:
        if not self._server_endpoint:
            return None
        return self._http.spawn(self._probe(self._server_endpoint))

    async def _probe(self, endpoint: str) -> None:
        result = await self._http.request('GET', f'{endpoint}status')

        if endpoint != self._server_endpoint:
            log.debug(f'Discarding status probe for previous endpoint \'{endpoint}\'.')
            return

        if result is None:
            self._set_disconnected()
            return

        status, body = result
        if status != 200:
            log.error(f'Status probe failed: HTTP {status} - {body.strip()}')
            self._set_disconnected()
            return

        self.status_text = body
        self._result_log.clear()
        self._result_log.print(body)
        if not self._connected:
            log.info(f'Connected to \'{endpoint}\'.')
        self._connected = True

    def _set_disconnected(self) -> None:
        if self._connected:
            log.warning(f'Lost connection to \'{self._server_endpoint}\'.')
        self._connected = False
        self.status_text = ''
