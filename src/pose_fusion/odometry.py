import logging

from .geometry import Pose2d, Twist2d

logger = logging.getLogger(__name__)


class Odometry:
    def __init__(self, initial_pose=None):
        """
        Dead-reckoning pose source.

        Tracks the robot pose from local sensors only. It is driven either by
        an absolute-tracking odometry sensor (`update(sensor_pose)`), whose
        readings are re-based whenever the pose is re-seeded, or incrementally
        from wheel/gyro motion (`apply_twist`, `integrate_velocity`). Use one
        style per robot; an `update` call replaces any incrementally
        integrated pose with the sensor-derived one.

        Args:
            initial_pose (Pose2d, optional): Starting pose on the field. Defaults to the origin.
        """
        self._pose = initial_pose if initial_pose is not None else Pose2d()
        self._sensor_pose = Pose2d()
        # Sensor reading at the last re-seed and the field pose it was mapped onto.
        self._seed_reading = self._sensor_pose
        self._seed_pose = self._pose

    def get_pose(self):
        return self._pose

    def update_pose(self, pose):
        """
        Re-seeds the odometry so the current sensor reading maps onto `pose`.
        Subsequent `update` calls report motion relative to this new origin.
        """
        self._pose = pose
        self._seed_reading = self._sensor_pose
        self._seed_pose = pose
        logger.debug("Odometry re-seeded to %s", pose)

    def update(self, sensor_pose):
        """
        Feeds a new absolute reading from the odometry sensor.

        Args:
            sensor_pose (Pose2d): Pose reported by the sensor in its own frame.
        Returns:
            Pose2d: The odometry pose in the field frame.
        """
        self._sensor_pose = sensor_pose
        self._pose = self._seed_pose + (sensor_pose - self._seed_reading)
        return self._pose

    def apply_twist(self, twist):
        """
        Advances the pose by a body-frame twist (e.g. from wheel encoder deltas).
        Returns: Pose2d, the new pose.
        """
        self._pose = self._pose.exp(twist)
        return self._pose

    def integrate_velocity(self, vx, vy, omega, dt):
        """
        Integrates body-frame velocities over one time step.

        Args:
            vx (float): Forward velocity (m/s).
            vy (float): Lateral velocity (m/s).
            omega (float): Angular velocity (rad/s).
            dt (float): Time step (s). Non-positive steps leave the pose unchanged.
        Returns:
            Pose2d: The new pose.
        """
        if dt <= 0:
            return self._pose
        return self.apply_twist(Twist2d(vx * dt, vy * dt, omega * dt))
