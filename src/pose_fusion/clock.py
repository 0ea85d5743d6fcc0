"""Time sources for the pose estimator.

The estimator never reads the wall clock directly. It is handed a clock:
any zero-argument callable returning seconds since a fixed epoch.
"""

import time


class MonotonicClock:
    """
    Monotonic clock with millisecond resolution, normalized to zero at
    construction.
    """

    def __init__(self, time_source=time.monotonic):
        self._time_source = time_source
        self._start_ms = self._millis()

    def _millis(self):
        return int(self._time_source() * 1000.0)

    def now(self):
        return (self._millis() - self._start_ms) / 1000.0

    def __call__(self):
        return self.now()


class ManualClock:
    """Deterministic clock advanced explicitly by the caller."""

    def __init__(self, start=0.0):
        self._now = float(start)

    def now(self):
        return self._now

    def advance(self, dt):
        if dt < 0:
            raise ValueError(f"Cannot move a monotonic clock backwards (dt={dt}).")
        self._now += dt
        return self._now

    def set(self, t):
        if t < self._now:
            raise ValueError(f"Cannot move a monotonic clock backwards ({t} < {self._now}).")
        self._now = float(t)
        return self._now

    def __call__(self):
        return self._now
