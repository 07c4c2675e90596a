import os
import json
import logging

CONFIG_PATH = os.environ.get('PORTARIA_CONFIG', 'config.json')

log = logging.getLogger(__name__)

class Config:
    def __init__(self, path: str = CONFIG_PATH, load: bool = True):
        # View bridge
        self.host = '0.0.0.0'
        self.port = 28080

        # Remote controller
        self.server: str = ''
        self.refresh_interval_ms: int = 1000
        self.gate_ticks: int = 2
        self.siren_ticks: int = 5
        self.pulse_duration_ms: int = 1000

        if not load:
            return

        config_data = {}

        try:
            with open(path, 'r', encoding='utf-8') as f:
                config_data = json.load(f)
                log.info('Successfully loaded config file.')

        except FileNotFoundError:
            log.warning(f'Config file \'{path}\' not found. Using defaults.')
        except Exception as e:
            log.critical(f'Failed to load config file: {e}')

        try:
            # Load Server Config
            self.host = config_data.get('host', self.host)
            self.port = int(config_data.get('port', self.port))

            # Load Controller Config
            self.server = config_data.get('server', '') or ''
            self.refresh_interval_ms = int(config_data.get('refreshIntervalMs', self.refresh_interval_ms))
            self.gate_ticks = int(config_data.get('gateTicks', self.gate_ticks))
            self.siren_ticks = int(config_data.get('sirenTicks', self.siren_ticks))
            self.pulse_duration_ms = int(config_data.get('pulseDurationMs', self.pulse_duration_ms))

        except Exception as e:
            log.critical(f'Failed to parse config file: {e}')

CONFIG = Config()
