import math

import pytest
import numpy as np
from pose_fusion.geometry import Pose2d, Twist2d
from pose_fusion.odometry import Odometry

# --- Sensor-driven odometry ---

def test_odometry_defaults_to_origin():
    odometry = Odometry()
    assert odometry.get_pose() == Pose2d()


def test_sensor_updates_follow_reading():
    odometry = Odometry()
    assert odometry.update(Pose2d(1.0, 0.5, 0.2)) == Pose2d(1.0, 0.5, 0.2)


def test_update_pose_rebases_sensor_readings():
    odometry = Odometry()
    odometry.update(Pose2d(1.0, 0.0, 0.0))
    odometry.update_pose(Pose2d(5.0, 5.0, math.pi / 2))
    assert odometry.get_pose() == Pose2d(5.0, 5.0, math.pi / 2)

    # Sensor moves 1 m forward; in the re-seeded frame forward is +y.
    pose = odometry.update(Pose2d(2.0, 0.0, 0.0))
    assert pose == Pose2d(5.0, 6.0, math.pi / 2)


def test_initial_pose_offsets_sensor_frame():
    odometry = Odometry(Pose2d(1.0, 2.0, math.pi))
    assert odometry.update(Pose2d(1.0, 0.0, 0.0)) == Pose2d(0.0, 2.0, math.pi)


# --- Incremental odometry ---

def test_apply_twist():
    odometry = Odometry()
    odometry.apply_twist(Twist2d(1.0, 0.0, 0.0))
    odometry.apply_twist(Twist2d(0.0, 0.0, math.pi / 2))
    odometry.apply_twist(Twist2d(1.0, 0.0, 0.0))
    assert odometry.get_pose() == Pose2d(1.0, 1.0, math.pi / 2)


def test_integrate_velocity_half_circle():
    # Constant curvature: v = 1 m/s, omega = 1 rad/s traces a circle of radius 1.
    odometry = Odometry()
    num_steps = 100
    dt = math.pi / num_steps
    for _ in range(num_steps):
        odometry.integrate_velocity(1.0, 0.0, 1.0, dt)
    pose = odometry.get_pose()
    assert np.allclose([pose.x, pose.y], [0.0, 2.0], atol=1e-9)
    assert abs(pose.rotation.sin) < 1e-9
    assert pose.rotation.cos == pytest.approx(-1.0)


def test_integrate_velocity_ignores_non_positive_dt():
    odometry = Odometry(Pose2d(1.0, 1.0, 0.0))
    odometry.integrate_velocity(1.0, 1.0, 1.0, 0.0)
    odometry.integrate_velocity(1.0, 1.0, 1.0, -0.1)
    assert odometry.get_pose() == Pose2d(1.0, 1.0, 0.0)
