"""Latency-compensated fusion of odometry and vision pose measurements."""

from .clock import ManualClock, MonotonicClock
from .config import EstimatorConfig
from .estimator import PoseEstimator, VisionUpdate, VisionUpdateLedger, compensate, steady_state_gain
from .geometry import Pose2d, Rotation2d, Transform2d, Translation2d, Twist2d
from .interpolation import TimeInterpolatableBuffer
from .odometry import Odometry

__version__ = "0.1.0"
