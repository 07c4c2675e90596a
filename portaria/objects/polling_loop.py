import asyncio
import inspect
import logging
from typing import Callable, List, Optional, Set

from portaria.objects.connection_monitor import ConnectionMonitor
from portaria.objects.display_state import DisplayState
from portaria.objects.peripheral import Sensor
from portaria.objects.timed_actions import TimedActionTracker

log = logging.getLogger(__name__)


class PollingLoop:
    """
    Fixed-interval worker reconciling local intent with the remote controller.

    Owns the only recurring task in the process; start() always cancels the
    previous task first.
    """
    def __init__(self,
                 monitor: ConnectionMonitor,
                 tracker: TimedActionTracker,
                 sensors: List[Sensor],
                 build_display: Callable[[], DisplayState],
                 publish: Optional[Callable[[DisplayState], object]] = None,
                 interval_ms: int = 1000):
        self._monitor = monitor
        self._tracker = tracker
        self._sensors = sensors
        self._build_display = build_display
        self._publish = publish
        self._interval: float = interval_ms / 1000
        self._task: Optional[asyncio.Task] = None
        self._publish_tasks: Set[asyncio.Future] = set()
        self.ticks: int = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def set_publisher(self, publish: Optional[Callable[[DisplayState], object]]) -> None:
        self._publish = publish

    def publish_now(self) -> None:
        """Publishes the current display outside the tick, e.g. after a disconnect."""
        if self._publish is None:
            return
        result = self._publish(self._build_display())
        if inspect.isawaitable(result):
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                log.debug('No running event loop. Display not published.')
                if inspect.iscoroutine(result):
                    result.close()
                return
            task = asyncio.ensure_future(result)
            self._publish_tasks.add(task)
            task.add_done_callback(self._publish_tasks.discard)

    async def tick(self) -> None:
        self.ticks += 1

        if not self._monitor.connected:
            self._monitor.probe()
            return

        self._tracker.tick()

        for sensor in self._sensors:
            sensor.refresh()

        display = self._build_display()

        if self._publish is not None:
            result = self._publish(display)
            if inspect.isawaitable(result):
                await result

    async def _run(self) -> None:
        log.info('Polling loop started.')
        try:
            while True:
                await asyncio.sleep(self._interval)
                try:
                    await self.tick()
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    log.critical(f'Error while running polling loop tick: {e}')
        except asyncio.CancelledError:
            log.info('Polling loop was cancelled.')
            raise

    def start(self) -> None:
        self.stop()
        self._task = asyncio.create_task(self._run())

    def stop(self) -> None:
        if self._task is not None:
            if not self._task.done():
                self._task.cancel()
            self._task = None
