"""Frame timing and timestamp utilities."""

import time
from datetime import datetime, timezone


def now_micros():
    """Current time in microseconds since Unix epoch."""
    return int(time.time() * 1_000_000)


def format_timestamp(epoch_us=None):
    """Format timestamp as ISO 8601 with microseconds."""
    if epoch_us is None:
        epoch_us = now_micros()

    dt = datetime.fromtimestamp(epoch_us / 1_000_000, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.%f") + "Z"


class FrameClock:
    """Measures elapsed seconds between consecutive frames.

    The first frame has no predecessor and reports ``first_dt``. Gaps longer
    than ``max_dt`` (a stalled loop, a debugger pause) are capped so a single
    frame never moves particles across the whole container.
    """

    def __init__(self, first_dt, max_dt, clock=time.perf_counter):
        self.first_dt = first_dt
        self.max_dt = max_dt
        self._clock = clock
        self._last = None

    def tick(self):
        now = self._clock()
        if self._last is None:
            dt = self.first_dt
        else:
            dt = min(now - self._last, self.max_dt)
        self._last = now
        return max(dt, 0.0)

    def restart(self):
        self._last = None
