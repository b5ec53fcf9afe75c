"""
Fake Clock

Manually advanced monotonic clock for age and uptime calculations.
"""


class FakeClock:
    """Callable returning a controllable time in seconds."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
