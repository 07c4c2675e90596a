import asyncio
import logging
from typing import Optional

from portaria.utils.http_client import HttpClient

ACTION_OFF = 'off'
ACTION_ON = 'on'
ACTION_TOGGLE = 'toggle'
ACTION_PULSE = 'pulse'

VALID_ACTIONS = [
    ACTION_OFF,
    ACTION_ON,
    ACTION_TOGGLE,
    ACTION_PULSE
]

log = logging.getLogger(__name__)


class Peripheral:
    """
    A remote sensor or actuator addressed by id against a server endpoint.

    A peripheral whose endpoint is empty is inert: every operation on it
    is a no-op.
    """
    def __init__(self,
                 http: HttpClient,
                 name: str,
                 peripheral_id: int,
                 server_endpoint: str = ''):
        self._http = http
        self._name: str = name
        self._peripheral_id: int = peripheral_id
        self.server_endpoint: str = server_endpoint

    @property
    def name(self) -> str:
        return self._name

    @property
    def peripheral_id(self) -> int:
        return self._peripheral_id

    def is_inert(self) -> bool:
        return not self.server_endpoint

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self._name!r}, id={self._peripheral_id})'


class Sensor(Peripheral):
    def __init__(self,
                 http: HttpClient,
                 name: str,
                 peripheral_id: int,
                 default_value: int,
                 server_endpoint: str = ''):
        super().__init__(http, name, peripheral_id, server_endpoint)
        self.last_value: int = default_value

    def refresh(self) -> Optional[asyncio.Task]:
        """
        Requests a new reading without waiting for it.

        The cached value is kept until a successful response arrives.
        """
        if self.is_inert():
            return None
        url = f'{self.server_endpoint}sensor?id={self.peripheral_id}'
        return self._http.spawn(self._read(url))

    async def _read(self, url: str) -> None:
        result = await self._http.request('GET', url)
        if result is None:
            return

        status, body = result
        if status != 200:
            log.warning(f'Reading sensor \'{self.name}\' failed: HTTP {status} - {body.strip()}')
            return

        try:
            self.last_value = int(body.strip())
        except ValueError:
            log.warning(f'Sensor \'{self.name}\' returned a non-integer value: {body!r}')


class Actuator(Peripheral):
    def __init__(self,
                 http: HttpClient,
                 name: str,
                 peripheral_id: int,
                 pulse_duration_ms: int = 1000,
                 server_endpoint: str = ''):
        super().__init__(http, name, peripheral_id, server_endpoint)
        # Optimistic: set when a command is issued, not when the device confirms it
        self.last_commanded_value: int = 0
        self.pulse_duration_ms: int = pulse_duration_ms

    def on(self) -> Optional[asyncio.Task]:
        return self._command(ACTION_ON, 1)

    def off(self) -> Optional[asyncio.Task]:
        return self._command(ACTION_OFF, 0)

    def toggle(self) -> Optional[asyncio.Task]:
        return self._command(ACTION_TOGGLE, 0 if self.last_commanded_value else 1)

    def pulse(self) -> Optional[asyncio.Task]:
        # The device times the pulse; locally the relay is considered released
        return self._command(ACTION_PULSE, 0, duration=self.pulse_duration_ms)

    def _command(self,
                 action: str,
                 new_value: int,
                 duration: Optional[int] = None) -> Optional[asyncio.Task]:
        if self.is_inert():
            return None

        self.last_commanded_value = new_value

        lines = [f'action={action}']
        if duration is not None:
            lines.append(f'duration={duration}')

        url = f'{self.server_endpoint}actuator{self.peripheral_id}'
        return self._http.spawn(self._send(url, action, '\n'.join(lines)))

    async def _send(self, url: str, action: str, body: str) -> None:
        result = await self._http.request('POST', url, data=body)
        if result is None:
            return

        status, text = result
        if not 200 <= status <= 204:
            log.error(f'Command \'{action}\' to actuator \'{self.name}\' failed: HTTP {status} - {text.strip()}')
        else:
            log.debug(f'Actuator \'{self.name}\' accepted \'{action}\'.')
