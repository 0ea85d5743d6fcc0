import math

import pytest
from pose_fusion.geometry import Pose2d
from pose_fusion.interpolation import TimeInterpolatableBuffer


def test_empty_buffer_returns_none():
    buffer = TimeInterpolatableBuffer.create_buffer(1.5)
    assert buffer.get_sample(0.0) is None
    assert buffer.is_empty()
    assert buffer.oldest_timestamp is None
    assert buffer.newest_timestamp is None


def test_linear_interpolation_exactness():
    buffer = TimeInterpolatableBuffer.create_buffer(1.5)
    buffer.add_sample(0.0, Pose2d(0.0, 0.0, 0.0))
    buffer.add_sample(2.0, Pose2d(4.0, 0.0, 0.0))
    # 2.0 - 0.0 > 1.5 would prune t=0, so use a wider window for this check.
    assert 0.0 not in buffer

    buffer = TimeInterpolatableBuffer.create_buffer(5.0)
    buffer.add_sample(0.0, Pose2d(0.0, 0.0, 0.0))
    buffer.add_sample(2.0, Pose2d(4.0, 0.0, 0.0))
    assert buffer.get_sample(1.0) == Pose2d(2.0, 0.0, 0.0)
    assert buffer.get_sample(0.5) == Pose2d(1.0, 0.0, 0.0)


def test_rotation_interpolated_along_shortest_arc():
    buffer = TimeInterpolatableBuffer.create_buffer(5.0)
    buffer.add_sample(0.0, Pose2d(0.0, 0.0, math.radians(170)))
    buffer.add_sample(1.0, Pose2d(0.0, 0.0, math.radians(-170)))
    assert buffer.get_sample(0.5) == Pose2d(0.0, 0.0, math.pi)


def test_boundary_clamp():
    buffer = TimeInterpolatableBuffer.create_buffer(10.0)
    first = Pose2d(1.0, 1.0, 0.1)
    last = Pose2d(2.0, 3.0, 0.2)
    buffer.add_sample(5.0, first)
    buffer.add_sample(10.0, last)
    assert buffer.get_sample(0.0) == first
    assert buffer.get_sample(20.0) == last
    assert buffer.get_sample(5.0) == first
    assert buffer.get_sample(10.0) == last


def test_exact_timestamp_returns_stored_value():
    buffer = TimeInterpolatableBuffer.create_buffer(5.0)
    poses = [Pose2d(float(i), 0.0, 0.0) for i in range(4)]
    for i, pose in enumerate(poses):
        buffer.add_sample(float(i), pose)
    assert buffer.get_sample(2.0) is poses[2]


def test_retention_pruning():
    buffer = TimeInterpolatableBuffer.create_buffer(1.5)
    buffer.add_sample(0.0, Pose2d(0.0, 0.0, 0.0))
    buffer.add_sample(1.0, Pose2d(1.0, 0.0, 0.0))
    buffer.add_sample(2.0, Pose2d(2.0, 0.0, 0.0))
    assert buffer.timestamps == [1.0, 2.0]
    assert 0.0 not in buffer
    # Queries before the retained range clamp to the oldest surviving sample.
    assert buffer.get_sample(0.0) == Pose2d(1.0, 0.0, 0.0)


def test_entry_exactly_at_window_edge_is_kept():
    buffer = TimeInterpolatableBuffer.create_float_buffer(1.5)
    buffer.add_sample(0.5, 0.5)
    buffer.add_sample(2.0, 2.0)
    assert buffer.timestamps == [0.5, 2.0]


def test_duplicate_timestamp_overwrites():
    buffer = TimeInterpolatableBuffer.create_buffer(1.5)
    buffer.add_sample(1.0, Pose2d(1.0, 0.0, 0.0))
    buffer.add_sample(1.0, Pose2d(7.0, 0.0, 0.0))
    assert len(buffer) == 1
    assert buffer.get_sample(1.0) == Pose2d(7.0, 0.0, 0.0)


def test_out_of_order_insertion_is_sorted():
    buffer = TimeInterpolatableBuffer.create_float_buffer(5.0)
    buffer.add_sample(2.0, 20.0)
    buffer.add_sample(1.0, 10.0)
    buffer.add_sample(3.0, 30.0)
    assert buffer.timestamps == [1.0, 2.0, 3.0]
    assert buffer.get_sample(1.5) == pytest.approx(15.0)
    assert buffer.get_sample(2.75) == pytest.approx(27.5)


def test_zero_retention_keeps_only_newest():
    buffer = TimeInterpolatableBuffer.create_float_buffer(0.0)
    buffer.add_sample(0.0, 1.0)
    buffer.add_sample(0.02, 2.0)
    assert buffer.items() == [(0.02, 2.0)]
    assert buffer.get_sample(0.0) == 2.0


def test_clear():
    buffer = TimeInterpolatableBuffer.create_float_buffer(1.0)
    buffer.add_sample(0.0, 1.0)
    buffer.clear()
    assert len(buffer) == 0
    assert buffer.get_sample(0.0) is None


def test_custom_interpolation_function():
    # Step function: always hold the earlier sample.
    buffer = TimeInterpolatableBuffer(5.0, lambda start, end, t: start)
    buffer.add_sample(0.0, "a")
    buffer.add_sample(1.0, "b")
    assert buffer.get_sample(0.9) == "a"


def test_negative_history_rejected():
    with pytest.raises(ValueError, match="non-negative"):
        TimeInterpolatableBuffer.create_buffer(-1.0)
