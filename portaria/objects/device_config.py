WIFI_MODE_STATION = 'STA'
WIFI_MODE_AP = 'AP'

VALID_WIFI_MODES = [
    WIFI_MODE_STATION,
    WIFI_MODE_AP
]


class DeviceConfig:
    """
    Network settings sent to the controller's config endpoint.
    """
    def __init__(self,
                 ssid: str,
                 password: str,
                 hostname: str,
                 wifi_mode: str = WIFI_MODE_STATION):
        wifi_mode = wifi_mode.upper()
        if wifi_mode not in VALID_WIFI_MODES:
            raise ValueError(f'\'{wifi_mode}\' is not a valid wifi mode.')

        # One setting per body line
        for field, value in (('ssid', ssid), ('password', password), ('hostname', hostname)):
            if '\n' in value or '\r' in value:
                raise ValueError(f'\'{field}\' must not contain line breaks.')

        self.ssid: str = ssid
        self.password: str = password
        self.hostname: str = hostname
        self.wifi_mode: str = wifi_mode

    def to_body(self) -> str:
        modo_wifi = '1' if self.wifi_mode == WIFI_MODE_AP else '0'
        return '\n'.join([
            f'ssid={self.ssid}',
            f'password={self.password}',
            f'hostname={self.hostname}',
            f'modo_wifi={modo_wifi}'
        ])
