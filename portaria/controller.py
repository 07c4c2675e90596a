import logging
from typing import Callable, Dict, Optional

from portaria.utils.config import CONFIG, Config
from portaria.utils.http_client import HttpClient
from portaria.utils.result_log import ResultLog
from portaria.objects.peripheral import Actuator, Sensor, VALID_ACTIONS, ACTION_OFF, ACTION_ON, ACTION_TOGGLE, ACTION_PULSE
from portaria.objects.connection_monitor import ConnectionMonitor
from portaria.objects.timed_actions import TimedActionTracker, OPEN_GATE, CLOSE_GATE, SIREN
from portaria.objects.display_state import DisplayState
from portaria.objects.device_config import DeviceConfig, WIFI_MODE_STATION
from portaria.objects.polling_loop import PollingLoop

BELL = 'bell'
DOOR_OPEN = 'door_open'
FLOODLIGHT = 'floodlight'

# name -> (id, safe default)
SENSORS = {
    BELL: (1, 1),
    DOOR_OPEN: (2, 0)
}

# name -> id
ACTUATORS = {
    OPEN_GATE: 1,
    CLOSE_GATE: 2,
    SIREN: 3,
    FLOODLIGHT: 4
}

log = logging.getLogger(__name__)


class ControllerState:
    """
    Process-wide state of the remote controller client.

    Built once at start-up. Only the controller operations mutate it.
    """
    def __init__(self, config: Config, http: HttpClient):
        self.http = http
        self.result_log = ResultLog()

        self.sensors: Dict[str, Sensor] = {
            name: Sensor(http, name, sensor_id, default)
            for name, (sensor_id, default) in SENSORS.items()
        }
        self.actuators: Dict[str, Actuator] = {
            name: Actuator(http, name, actuator_id, pulse_duration_ms=config.pulse_duration_ms)
            for name, actuator_id in ACTUATORS.items()
        }

        self.monitor = ConnectionMonitor(http, self.result_log)
        self.tracker = TimedActionTracker(self.actuators, {
            OPEN_GATE: config.gate_ticks,
            CLOSE_GATE: config.gate_ticks,
            SIREN: config.siren_ticks
        })

    def build_display(self) -> DisplayState:
        return DisplayState(
            connected=self.monitor.connected,
            status_text=self.monitor.status_text,
            bell_value=self.sensors[BELL].last_value,
            door_value=self.sensors[DOOR_OPEN].last_value,
            siren_active=self.tracker.is_active(SIREN),
            floodlight_on=bool(self.actuators[FLOODLIGHT].last_commanded_value),
            lines=self.result_log.lines
        )


class GateController:
    """
    Operations the view layer uses to observe and drive the remote controller.
    """
    def __init__(self,
                 config: Optional[Config] = None,
                 http: Optional[HttpClient] = None,
                 publish: Optional[Callable[[DisplayState], object]] = None):
        config = config or CONFIG
        self.http = http or HttpClient()
        self.state = ControllerState(config, self.http)
        self.loop = PollingLoop(self.state.monitor,
                                self.state.tracker,
                                list(self.state.sensors.values()),
                                self.state.build_display,
                                publish=publish,
                                interval_ms=config.refresh_interval_ms)

        if config.server:
            self._apply_server_endpoint(config.server)

    @property
    def server_endpoint(self) -> str:
        return self.state.monitor.server_endpoint

    @property
    def commands_enabled(self) -> bool:
        return self.loop.running

    def get_sensor_value(self, name: str) -> int:
        if name not in self.state.sensors:
            raise ValueError(f'\'{name}\' is not a known sensor.')
        return self.state.sensors[name].last_value

    def get_connection_state(self) -> dict:
        return {
            'connected': self.state.monitor.connected,
            'statusText': self.state.monitor.status_text
        }

    def get_timed_action_remaining(self, action: str) -> int:
        return self.state.tracker.remaining(action)

    def get_display(self) -> DisplayState:
        return self.state.build_display()

    def issue_command(self, peripheral_name: str, action: str) -> None:
        if peripheral_name not in self.state.actuators:
            raise ValueError(f'\'{peripheral_name}\' is not a known actuator.')
        if action not in VALID_ACTIONS:
            raise ValueError(f'\'{action}\' is not a valid action.')

        if not self.commands_enabled:
            log.warning(f'Ignoring \'{action}\' for \'{peripheral_name}\': controller is paused.')
            return

        log.info(f'Command \'{action}\' for \'{peripheral_name}\'.')
        actuator = self.state.actuators[peripheral_name]
        tracker = self.state.tracker

        if peripheral_name not in tracker.actions or action == ACTION_PULSE:
            getattr(actuator, action)()
        elif action == ACTION_ON:
            tracker.start(peripheral_name)
        elif action == ACTION_OFF:
            tracker.stop(peripheral_name)
        elif action == ACTION_TOGGLE:
            if tracker.is_active(peripheral_name):
                tracker.stop(peripheral_name)
            else:
                tracker.start(peripheral_name)

    def set_server_endpoint(self, url: str) -> None:
        self._apply_server_endpoint(url)
        self.loop.publish_now()

    def _apply_server_endpoint(self, url: str) -> None:
        url = (url or '').strip()
        if url and not url.endswith('/'):
            url += '/'

        log.info(f'Server endpoint set to \'{url}\'.')
        for peripheral in [*self.state.sensors.values(), *self.state.actuators.values()]:
            peripheral.server_endpoint = url
        self.state.monitor.server_endpoint = url
        self.state.result_log.clear()

    def reset_controller(self) -> None:
        """Releases the gate relays and silences the siren."""
        for action in self.state.tracker.actions:
            self.state.tracker.stop(action)

    def start(self) -> None:
        self.reset_controller()
        self.resume()

    def resume(self) -> None:
        self.state.monitor.probe()
        self.loop.start()

    def pause(self) -> None:
        self.loop.stop()
        self.state.monitor.reset()
        self.state.result_log.clear()
        self.loop.publish_now()

    def save_config(self,
                    ssid: str,
                    password: str,
                    hostname: str,
                    wifi_mode: str = WIFI_MODE_STATION):
        device_config = DeviceConfig(ssid, password, hostname, wifi_mode)
        endpoint = self.server_endpoint
        if not endpoint:
            return None
        return self.http.spawn(self._send_config(f'{endpoint}config', device_config))

    async def _send_config(self, url: str, device_config: DeviceConfig) -> None:
        result = await self.http.request('POST', url, data=device_config.to_body())
        if result is None:
            return

        status, body = result
        if not 200 <= status <= 204:
            log.error(f'Saving device config failed: HTTP {status} - {body.strip()}')
            return

        # The controller restarts its network with the new settings
        log.info(f'Device config saved (hostname \'{device_config.hostname}\').')
        self.state.monitor.reset()
        self.state.result_log.clear()
        self.loop.publish_now()

    async def close(self) -> None:
        self.loop.stop()
        await self.http.close()
