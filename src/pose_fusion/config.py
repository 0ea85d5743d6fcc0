"""Configuration parameters for the pose estimator.

Defaults are tuned for a small wheeled robot running a ~50 Hz control loop
with a camera delivering field-relative pose fixes at a few Hz.
Standard deviation vectors are ordered [x (m), y (m), heading (rad)].
"""

from dataclasses import dataclass

import numpy as np

# ============================================================================
# Odometry history
# ============================================================================

BUFFER_DURATION = 1.5
"""How long odometry samples are kept for latency compensation (seconds).

Vision measurements older than this relative to the newest odometry sample
are dropped. Must cover the worst-case camera pipeline latency."""


# ============================================================================
# Noise model
# ============================================================================

DEFAULT_STATE_STD_DEVS = (0.1, 0.1, 0.1)
"""Trust in the odometry-based state estimate.

Larger values make vision corrections pull harder on the estimate.
A zero entry means vision is never trusted on that axis."""

DEFAULT_VISION_STD_DEVS = (0.9, 0.9, 0.9)
"""Trust in vision pose measurements.

Larger values make vision corrections gentler. Typically raised as
distance to the observed target grows."""


def as_std_dev_vector(values, name="std_devs", allow_inf=False):
    """
    Validates and converts a 3-entry standard deviation sequence to a numpy array.

    With allow_inf, +inf is accepted and means "never trust this axis".
    NaN and negative entries are always rejected.
    """
    vec = np.asarray(values, dtype=float).reshape(-1)
    if vec.shape != (3,):
        raise ValueError(f"{name} must have exactly 3 entries [x, y, heading], got {vec.shape[0]}.")
    if np.any(np.isnan(vec)) or np.any(vec < 0):
        raise ValueError(f"{name} must be non-negative numbers, got {vec.tolist()}.")
    if not allow_inf and not np.all(np.isfinite(vec)):
        raise ValueError(f"{name} must be finite, got {vec.tolist()}.")
    return vec


@dataclass(frozen=True)
class EstimatorConfig:
    """Bundle of pose estimator tuning parameters."""

    state_std_devs: tuple = DEFAULT_STATE_STD_DEVS
    vision_std_devs: tuple = DEFAULT_VISION_STD_DEVS
    buffer_duration: float = BUFFER_DURATION

    def __post_init__(self):
        object.__setattr__(self, "state_std_devs",
                           tuple(float(v) for v in as_std_dev_vector(self.state_std_devs, "state_std_devs")))
        object.__setattr__(self, "vision_std_devs",
                           tuple(float(v) for v in as_std_dev_vector(self.vision_std_devs, "vision_std_devs", allow_inf=True)))
        if self.buffer_duration < 0:
            raise ValueError("buffer_duration must be non-negative.")

    @classmethod
    def from_dict(cls, values):
        """Builds a config from a plain mapping (e.g. a parsed robot settings file)."""
        known = {"state_std_devs", "vision_std_devs", "buffer_duration"}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown estimator config keys: {sorted(unknown)}")
        return cls(**values)
