import numpy as np


def _lerp(start, end, t):
    return start + (end - start) * t


def _interpolate_method(start, end, t):
    return start.interpolate(end, t)


class TimeInterpolatableBuffer:
    """
    Time-ordered store of samples that can be queried at any timestamp.

    Samples are kept in two parallel lists sorted by timestamp. A query
    between two stored timestamps interpolates between them; a query
    outside the stored range clamps to the nearest end. Entries older than
    `history_seconds` before the newest sample are dropped on insertion.
    """

    def __init__(self, history_seconds, interpolate_func=None):
        """
        Args:
            history_seconds (float): Retention window, measured back from the newest sample.
            interpolate_func (callable, optional): f(start, end, t) -> value, with t in [0, 1].
                Defaults to calling start.interpolate(end, t).
        """
        if history_seconds < 0:
            raise ValueError("history_seconds must be non-negative.")
        self.history_seconds = float(history_seconds)
        self._interpolate = interpolate_func if interpolate_func is not None else _interpolate_method
        self._timestamps = []
        self._values = []

    @classmethod
    def create_buffer(cls, history_seconds):
        """Buffer for values that expose an `interpolate(end, t)` method (poses, rotations)."""
        return cls(history_seconds)

    @classmethod
    def create_float_buffer(cls, history_seconds):
        """Buffer for plain scalars, interpolated linearly."""
        return cls(history_seconds, _lerp)

    def add_sample(self, time, sample):
        """
        Inserts `sample` at `time`, overwriting any sample at the same timestamp,
        then prunes entries that fell out of the retention window.
        """
        time = float(time)
        idx = int(np.searchsorted(self._timestamps, time, side='left'))
        if idx < len(self._timestamps) and self._timestamps[idx] == time:
            self._values[idx] = sample
        else:
            self._timestamps.insert(idx, time)
            self._values.insert(idx, sample)
        self._clean_up(self._timestamps[-1])

    def _clean_up(self, newest_time):
        cutoff = newest_time - self.history_seconds
        first_kept = int(np.searchsorted(self._timestamps, cutoff, side='left'))
        if first_kept > 0:
            del self._timestamps[:first_kept]
            del self._values[:first_kept]

    def clear(self):
        self._timestamps.clear()
        self._values.clear()

    def get_sample(self, time):
        """
        Sample the buffer at `time`.

        Returns:
            The stored or interpolated value, or None if the buffer is empty.
        """
        if not self._timestamps:
            return None

        if time <= self._timestamps[0]:
            return self._values[0]
        if time >= self._timestamps[-1]:
            return self._values[-1]

        # idx is the first entry strictly after `time`; idx - 1 is the floor entry.
        idx = int(np.searchsorted(self._timestamps, time, side='right'))
        t_floor = self._timestamps[idx - 1]
        if t_floor == time:
            return self._values[idx - 1]
        t_ceil = self._timestamps[idx]

        alpha = (time - t_floor) / (t_ceil - t_floor)
        return self._interpolate(self._values[idx - 1], self._values[idx], alpha)

    @property
    def oldest_timestamp(self):
        return self._timestamps[0] if self._timestamps else None

    @property
    def newest_timestamp(self):
        return self._timestamps[-1] if self._timestamps else None

    @property
    def timestamps(self):
        return list(self._timestamps)

    def items(self):
        return list(zip(self._timestamps, self._values))

    def is_empty(self):
        return not self._timestamps

    def __len__(self):
        return len(self._timestamps)

    def __contains__(self, time):
        idx = int(np.searchsorted(self._timestamps, time, side='left'))
        return idx < len(self._timestamps) and self._timestamps[idx] == time
