import datetime
from typing import List

BELL_ACTIVE_VALUE = 0


class DisplayState:
    def __init__(self,
                 connected: bool,
                 status_text: str,
                 bell_value: int,
                 door_value: int,
                 siren_active: bool,
                 floodlight_on: bool,
                 lines: List[str]) -> None:
        self.connected: bool = connected
        self.status_text: str = status_text
        # Bell input is active-low, door input is active-high
        self.bell_ringing: bool = bell_value == BELL_ACTIVE_VALUE
        self.door_open: bool = door_value != 0
        self.siren_active: bool = siren_active
        self.floodlight_on: bool = floodlight_on
        self.lines: List[str] = lines
        self.timestamp: datetime.datetime = datetime.datetime.now()

    def to_dict(self, json_friendly: bool) -> dict:
        return {
            'connected': self.connected,
            'statusText': self.status_text,
            'bellRinging': self.bell_ringing,
            'doorOpen': self.door_open,
            'sirenActive': self.siren_active,
            'floodlightOn': self.floodlight_on,
            'lines': self.lines,
            'timestamp': self.timestamp.isoformat() if json_friendly else self.timestamp
        }
