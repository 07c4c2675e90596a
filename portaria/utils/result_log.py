from typing import List

class ResultLog:
    """Accumulated result lines shown to the operator."""
    def __init__(self) -> None:
        self._lines: List[str] = []

    def clear(self) -> None:
        self._lines = []

    def print(self, text: str) -> None:
        # Multi-line text becomes one entry per line
        self._lines.extend(text.split('\n'))

    @property
    def lines(self) -> List[str]:
        return list(self._lines)
