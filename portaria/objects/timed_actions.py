import logging
from typing import Dict, List

from portaria.objects.peripheral import Actuator

OPEN_GATE = 'open_gate'
CLOSE_GATE = 'close_gate'
SIREN = 'siren'

log = logging.getLogger(__name__)


class TimedActionTracker:
    """
    Client-side countdowns for momentary actuators.

    A counter above zero means the actuator is commanded on and will be
    released by tick() when the counter reaches zero.
    """
    def __init__(self, actuators: Dict[str, Actuator], durations: Dict[str, int]):
        self._actuators: Dict[str, Actuator] = {}
        self._durations: Dict[str, int] = {}
        self._counters: Dict[str, int] = {}

        for action, ticks in durations.items():
            if action not in actuators:
                raise ValueError(f'No actuator for timed action \'{action}\'.')
            self._actuators[action] = actuators[action]
            self._durations[action] = ticks
            self._counters[action] = 0

    @property
    def actions(self) -> List[str]:
        return list(self._counters)

    def _check(self, action: str) -> None:
        if action not in self._counters:
            raise ValueError(f'\'{action}\' is not a timed action.')

    def remaining(self, action: str) -> int:
        self._check(action)
        return self._counters[action]

    def is_active(self, action: str) -> bool:
        return self.remaining(action) > 0

    def start(self, action: str) -> None:
        self._check(action)
        self._counters[action] = self._durations[action]
        log.debug(f'Timed action \'{action}\' started for {self._durations[action]} ticks.')
        self._actuators[action].on()

    def stop(self, action: str) -> None:
        # Counter and release always go together so no stale countdown fires later
        self._check(action)
        self._counters[action] = 0
        self._actuators[action].off()

    def tick(self) -> None:
        for action, remaining in self._counters.items():
            if remaining <= 0:
                continue
            self._counters[action] = remaining - 1
            if self._counters[action] == 0:
                log.debug(f'Timed action \'{action}\' expired. Releasing actuator.')
                self._actuators[action].off()
