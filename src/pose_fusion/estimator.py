import logging
from dataclasses import dataclass

import numpy as np

from .clock import MonotonicClock
from .config import BUFFER_DURATION, as_std_dev_vector
from .geometry import Pose2d, Twist2d
from .interpolation import TimeInterpolatableBuffer

logger = logging.getLogger(__name__)


def steady_state_gain(process_variance, measurement_variance):
    """
    Closed-form steady-state Kalman gain for a continuous filter with A = 0, C = I.

    Args:
        process_variance (np.ndarray): (3,) variances of the odometry state (q).
        measurement_variance (np.ndarray): (3,) variances of the vision measurement (r).
    Returns:
        np.ndarray: (3,3) diagonal gain, K[i,i] = q / (q + sqrt(q * r)).
            Axes with q == 0 or an infinite r get a zero gain.
    """
    q = np.asarray(process_variance, dtype=float)
    r = np.asarray(measurement_variance, dtype=float)
    if q.shape != (3,) or r.shape != (3,):
        raise ValueError("process_variance and measurement_variance must be (3,) arrays.")

    gains = np.zeros(3)
    for i in range(3):
        if q[i] == 0.0 or np.isinf(r[i]):
            continue
        gains[i] = q[i] / (q[i] + np.sqrt(q[i] * r[i]))
    return np.diag(gains)


@dataclass(frozen=True)
class VisionUpdate:
    """
    A vision-compensated pose together with the odometry pose recorded at the
    same instant.
    """

    vision_pose: Pose2d
    odometry_pose: Pose2d


def compensate(update, pose):
    """
    Moves an odometry pose into the vision-corrected frame: the motion since
    `update.odometry_pose` is replayed on top of `update.vision_pose`.
    """
    return update.vision_pose + (pose - update.odometry_pose)


class VisionUpdateLedger:
    """Vision updates keyed by measurement timestamp, kept in time order."""

    def __init__(self):
        self._timestamps = []
        self._updates = []

    def record(self, time, update):
        """
        Stores `update` at `time` and discards every entry recorded after it.
        """
        idx = int(np.searchsorted(self._timestamps, time, side='left'))
        dropped = len(self._timestamps) - idx
        if dropped and self._timestamps[idx] == time:
            dropped -= 1
        if dropped:
            logger.debug("Vision update at t=%.3f supersedes %d later update(s)", time, dropped)
        del self._timestamps[idx:]
        del self._updates[idx:]
        self._timestamps.append(float(time))
        self._updates.append(update)

    def prune_before(self, oldest_needed):
        """
        Drops updates that can no longer affect sampling: everything strictly
        before the newest update at or before `oldest_needed`.
        """
        if not self._timestamps or oldest_needed < self._timestamps[0]:
            return
        floor_idx = int(np.searchsorted(self._timestamps, oldest_needed, side='right')) - 1
        del self._timestamps[:floor_idx]
        del self._updates[:floor_idx]

    def floor(self, time):
        """Latest update at or before `time`, or None."""
        idx = int(np.searchsorted(self._timestamps, time, side='right')) - 1
        if idx < 0:
            return None
        return self._updates[idx]

    def latest(self):
        return self._updates[-1] if self._updates else None

    @property
    def first_timestamp(self):
        return self._timestamps[0] if self._timestamps else None

    @property
    def timestamps(self):
        return list(self._timestamps)

    def clear(self):
        self._timestamps.clear()
        self._updates.clear()

    def __len__(self):
        return len(self._timestamps)


class PoseEstimator:
    """
    Fuses odometry with latency-compensated vision pose measurements.

    Odometry poses are recorded every loop in a short time-indexed buffer.
    When a vision measurement arrives for a past timestamp, the estimate at
    that instant is reconstructed from the buffer, nudged towards the
    measurement by the steady-state gain, and stored as a VisionUpdate. The
    published estimate is the live odometry pose compensated by the newest
    VisionUpdate, so motion sensed after the fix is kept.

    Not thread-safe: call everything from the control loop thread.
    """

    def __init__(self, odometry, state_std_devs, vision_std_devs, clock=None,
                 buffer_duration=BUFFER_DURATION):
        """
        Args:
            odometry: Object exposing get_pose() and update_pose(pose).
            state_std_devs: [x (m), y (m), heading (rad)] trust in the odometry state.
                Increase to trust odometry less.
            vision_std_devs: [x, y, heading] trust in vision measurements.
                Increase to trust vision less.
            clock (callable, optional): Returns the current time in seconds.
                Defaults to a MonotonicClock started now.
            buffer_duration (float): Odometry history kept for late measurements (s).
        """
        if buffer_duration < 0:
            raise ValueError("buffer_duration must be non-negative.")
        self._odometry = odometry
        self._clock = clock if clock is not None else MonotonicClock()
        self._buffer_duration = float(buffer_duration)

        self._q = as_std_dev_vector(state_std_devs, "state_std_devs") ** 2
        self._vision_k = np.zeros((3, 3))

        self._odometry_buffer = TimeInterpolatableBuffer.create_buffer(self._buffer_duration)
        self._vision_updates = VisionUpdateLedger()

        self._pose_estimate = odometry.get_pose()
        self.set_vision_measurement_std_devs(vision_std_devs)

    @classmethod
    def from_config(cls, odometry, config, clock=None):
        return cls(
            odometry,
            config.state_std_devs,
            config.vision_std_devs,
            clock=clock,
            buffer_duration=config.buffer_duration,
        )

    @property
    def odometry(self):
        return self._odometry

    @property
    def buffer_duration(self):
        return self._buffer_duration

    @property
    def process_variance(self):
        return self._q.copy()

    @property
    def vision_gain(self):
        return self._vision_k.copy()

    def set_vision_measurement_std_devs(self, vision_std_devs):
        """
        Sets how much vision measurements are trusted, e.g. less as the
        distance to the observed target grows.
        """
        r = as_std_dev_vector(vision_std_devs, "vision_std_devs", allow_inf=True) ** 2
        self._vision_k = steady_state_gain(self._q, r)

    # --- Resets ---

    def _reseed(self, pose):
        self._odometry.update_pose(pose)
        self._odometry_buffer.clear()
        self._vision_updates.clear()
        self._pose_estimate = self._odometry.get_pose()
        logger.info("Pose estimator reset to %s", self._pose_estimate)

    def reset_position(self, gyro_angle, pose):
        """Resets to `pose`'s translation with heading `gyro_angle`."""
        self._reseed(Pose2d(pose.x, pose.y, gyro_angle))

    def reset_pose(self, pose):
        self._reseed(pose)

    def reset_translation(self, translation):
        """Resets the translation, keeping the current estimated heading."""
        self._reseed(Pose2d(translation.x, translation.y, self._pose_estimate.rotation))

    def reset_rotation(self, rotation):
        """Resets the heading, keeping the current estimated translation."""
        self._reseed(Pose2d(self._pose_estimate.x, self._pose_estimate.y, rotation))

    # --- Queries ---

    def get_estimated_position(self):
        return self._pose_estimate

    @property
    def estimated_pose(self):
        return self._pose_estimate

    def sample_at(self, timestamp):
        """
        Vision-compensated pose at `timestamp`, or None if no odometry has been
        recorded. Timestamps outside the buffered range are clamped to it.
        """
        if self._odometry_buffer.is_empty():
            return None

        timestamp = min(max(timestamp, self._odometry_buffer.oldest_timestamp),
                        self._odometry_buffer.newest_timestamp)

        odometry_pose = self._odometry_buffer.get_sample(timestamp)
        vision_update = self._vision_updates.floor(timestamp)
        if vision_update is None:
            return odometry_pose
        return compensate(vision_update, odometry_pose)

    # --- Measurements ---

    def _clean_up_vision_updates(self):
        oldest = self._odometry_buffer.oldest_timestamp
        if oldest is None:
            return
        self._vision_updates.prune_before(oldest)

    def add_vision_measurement(self, vision_pose, timestamp, vision_std_devs=None):
        """
        Adds a field-relative pose measured by vision at `timestamp`.

        May be called at any rate, as long as update() runs every loop.
        Measurements older than the odometry buffer are ignored.

        Args:
            vision_pose (Pose2d): Robot pose as measured by the camera.
            timestamp (float): When the image was captured, in the estimator's clock epoch.
            vision_std_devs (optional): New vision trust to apply before this measurement.
        """
        if vision_std_devs is not None:
            self.set_vision_measurement_std_devs(vision_std_devs)

        newest = self._odometry_buffer.newest_timestamp
        if newest is None or newest - self._buffer_duration > timestamp:
            logger.debug("Ignoring vision measurement at t=%.3f: outside odometry history", timestamp)
            return

        self._clean_up_vision_updates()

        odometry_sample = self._odometry_buffer.get_sample(timestamp)
        if odometry_sample is None:
            return
        vision_sample = self.sample_at(timestamp)
        if vision_sample is None:
            return

        # Only move part of the way towards the measurement, per axis in the body frame.
        twist = vision_sample.log(vision_pose)
        scaled = Twist2d.from_vector(self._vision_k @ twist.as_vector())

        update = VisionUpdate(vision_sample.exp(scaled), odometry_sample)
        self._vision_updates.record(timestamp, update)

        # Later updates were just discarded, so this is the newest one.
        self._pose_estimate = compensate(update, self._odometry.get_pose())

    # --- Loop ---

    def update(self):
        """Records the current odometry pose using the estimator's clock. Call every loop."""
        return self.update_with_time(self._clock())

    def update_with_time(self, current_time):
        """
        Records the current odometry pose at `current_time` and refreshes the estimate.

        Returns:
            Pose2d: The estimated pose.
        """
        odometry_pose = self._odometry.get_pose()
        self._odometry_buffer.add_sample(current_time, odometry_pose)

        latest = self._vision_updates.latest()
        if latest is None:
            self._pose_estimate = odometry_pose
        else:
            self._pose_estimate = compensate(latest, odometry_pose)
        return self._pose_estimate
