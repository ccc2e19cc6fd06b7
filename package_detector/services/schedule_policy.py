"""Day/night wake window for captures."""

from datetime import datetime
from typing import Callable, Optional

HOURS_PER_DAY = 24


def is_awake(now: datetime, sleep_hour: int, wake_hour: int) -> bool:
    """Check if captures are permitted at ``now``.

    The awake window starts at ``wake_hour`` (inclusive) and runs around the
    clock until ``sleep_hour`` (exclusive). Equal hours disable sleeping.

    Examples:
        sleep 22, wake 7 -> awake from 07:00 until 21:59
        sleep 6, wake 22 -> awake from 22:00 until 05:59
    """
    if sleep_hour == wake_hour:
        return True

    window_length = (sleep_hour - wake_hour) % HOURS_PER_DAY
    offset = (now.hour - wake_hour) % HOURS_PER_DAY
    return offset < window_length


class SchedulePolicy:
    """Binds the configured sleep/wake hours and a clock to ``is_awake``."""

    def __init__(self, sleep_hour: int, wake_hour: int,
                 clock: Optional[Callable[[], datetime]] = None):
        self.sleep_hour = sleep_hour
        self.wake_hour = wake_hour
        self.clock = clock or datetime.now

    @property
    def always_awake(self) -> bool:
        return self.sleep_hour == self.wake_hour

    def is_awake(self, now: Optional[datetime] = None) -> bool:
        return is_awake(now or self.clock(), self.sleep_hour, self.wake_hour)

    def describe(self) -> str:
        if self.always_awake:
            return "always awake"
        return f"awake {self.wake_hour:02d}:00-{self.sleep_hour:02d}:00"
