"""
Unit tests for indoor_pdr/tracker/tracker.py (IndoorPositionTracker).

Tests cover:
    - Steps move the position along the heading cached at step time
    - Reset, replay after reset, runtime configuration and pausing
    - Diagnostics snapshot
    - Concurrent ingestion from two threads

Run with: pytest tests/tracker/test_position_tracker.py -v
"""

import threading
import unittest
import warnings
from typing import List

import numpy as np
import pytest

from indoor_pdr.sensors.step_detection import DetectionAlgorithm, Sensitivity
from indoor_pdr.tracker import IndoorPositionTracker, MotionUpdate, TrackerConfig

G = 9.8
BUMP = [G + 4.0 * np.sin(np.pi * k / 6) for k in range(1, 6)]


def walk_steps(tracker: IndoorPositionTracker, num_steps: int) -> List[MotionUpdate]:
    """Feed `num_steps` footfalls 700 ms apart, after a 200 ms still lead-in."""
    signal = [G] * 10
    for _ in range(num_steps):
        signal += BUMP + [G] * 30
    return [tracker.ingest_motion(0.0, m, 0.0, 20.0) for m in signal]


def make_tracker(**kwargs) -> IndoorPositionTracker:
    return IndoorPositionTracker(TrackerConfig(filter_enabled=False, **kwargs))


def turn_and_walk(tracker: IndoorPositionTracker) -> List[MotionUpdate]:
    """Calibrate, walk 2 steps, turn right by 90°, walk 3 steps."""
    tracker.ingest_orientation(200.0, 80.0, 0.0)
    updates = walk_steps(tracker, 2)
    tracker.ingest_orientation(110.0, 80.0, 0.0)
    return updates + walk_steps(tracker, 3)


class TestStepping(unittest.TestCase):
    """Test suite for step-driven position updates."""

    def test_initial_state(self) -> None:
        """Test origin at eye height, no steps, heading 0."""
        tracker = IndoorPositionTracker()
        assert tracker.position.as_tuple() == (0.0, 1.6, 0.0)
        assert tracker.step_count == 0
        assert tracker.heading == 0.0

    def test_uncalibrated_walks_forward(self) -> None:
        """Test steps without orientation walk along -z."""
        tracker = make_tracker()
        updates = walk_steps(tracker, 4)
        stepped = [u for u in updates if u.stepped]

        assert len(stepped) == 4
        assert [u.step_count for u in stepped] == [1, 2, 3, 4]
        assert tracker.position.x == pytest.approx(0.0)
        assert tracker.position.z == pytest.approx(-4 * 0.65)

    def test_non_step_update_reports_position(self) -> None:
        """Test a sample without a step still reports the position."""
        tracker = make_tracker()
        update = tracker.ingest_motion(0.0, G, 0.0, 20.0)
        assert not update.stepped
        assert update.event is None
        assert update.position == tracker.position

    def test_heading_at_step_time(self) -> None:
        """Test each step uses the heading cached when it is accepted."""
        tracker = make_tracker(step_length=1.0)
        tracker.ingest_orientation(200.0, 80.0, 0.0)
        walk_steps(tracker, 2)
        tracker.ingest_orientation(110.0, 80.0, 0.0)  # turned right by 90°
        walk_steps(tracker, 3)

        assert tracker.step_count == 5
        assert tracker.position.x == pytest.approx(3.0)
        assert tracker.position.z == pytest.approx(-2.0)

    def test_orientation_alone_never_moves(self) -> None:
        """Test orientation samples never change the position."""
        tracker = make_tracker()
        for alpha in range(0, 360, 10):
            tracker.ingest_orientation(float(alpha))
        assert tracker.position.as_tuple() == (0.0, 1.6, 0.0)

    def test_step_count_monotonic(self) -> None:
        """Test the step count grows by at most 1 per sample."""
        tracker = make_tracker()
        counts = [u.step_count for u in walk_steps(tracker, 5)]
        assert all(b - a in (0, 1) for a, b in zip(counts, counts[1:]))

    def test_trajectory(self) -> None:
        """Test the trajectory keeps the newest positions."""
        tracker = make_tracker(trajectory_capacity=2)
        walk_steps(tracker, 3)
        traj = tracker.trajectory()
        np.testing.assert_allclose(traj[:, 2], [-1.3, -1.95])


class TestReset(unittest.TestCase):
    """Test suite for reset."""

    def test_reset_restores_initial_state(self) -> None:
        """Test reset clears steps, position and calibration."""
        tracker = make_tracker()
        tracker.ingest_orientation(90.0)
        walk_steps(tracker, 3)
        tracker.reset()

        stats = tracker.get_stats()
        assert stats.step_count == 0
        assert stats.sample_count == 0
        assert stats.position.as_tuple() == (0.0, 1.6, 0.0)
        assert not stats.calibrated
        assert tracker.trajectory().shape == (0, 3)

    def test_reset_idempotent(self) -> None:
        """Test two resets leave the same state as one."""
        tracker = make_tracker()
        walk_steps(tracker, 2)
        tracker.reset()
        first = tracker.get_stats()
        tracker.reset()
        assert tracker.get_stats() == first

    def test_recalibrates_after_reset(self) -> None:
        """Test the first alpha after reset becomes the new reference."""
        tracker = make_tracker()
        tracker.ingest_orientation(30.0)
        tracker.ingest_orientation(120.0)
        tracker.reset()
        tracker.ingest_orientation(120.0)
        assert tracker.heading == 0.0

    def test_replay_after_reset_matches_fresh_tracker(self) -> None:
        """Test reset then replay gives the same updates as a fresh tracker."""
        for algorithm in DetectionAlgorithm:
            tracker = IndoorPositionTracker(TrackerConfig(algorithm=algorithm))
            first = turn_and_walk(tracker)
            tracker.reset()
            replay = turn_and_walk(tracker)
            fresh = turn_and_walk(IndoorPositionTracker(TrackerConfig(algorithm=algorithm)))

            assert replay == fresh
            assert replay == first
            assert sum(u.stepped for u in replay) == 5


class TestConfigure(unittest.TestCase):
    """Test suite for runtime configuration."""

    def test_step_length_applies_to_next_step(self) -> None:
        """Test a new step length only affects later steps."""
        tracker = make_tracker()
        walk_steps(tracker, 1)
        config = tracker.configure({'stepLength': 1.0})
        walk_steps(tracker, 1)

        assert config.step_length == 1.0
        assert tracker.position.z == pytest.approx(-1.65)
        assert tracker.step_count == 2

    def test_detector_options(self) -> None:
        """Test detector options reach the running detector."""
        tracker = make_tracker()
        tracker.configure({'sensitivity': 'high', 'filterAlpha': 0.4, 'filterEnabled': True})

        assert tracker.detector.sensitivity is Sensitivity.HIGH
        assert tracker.detector.motion_filter.alpha == 0.4
        assert tracker.detector.motion_filter.enabled
        assert tracker.config.sensitivity is Sensitivity.HIGH

    def test_clamped_value_forwarded(self) -> None:
        """Test the detector receives the clamped value."""
        tracker = make_tracker()
        with pytest.warns(UserWarning):
            tracker.configure({'minPeakInterval': 9000})
        assert tracker.detector.min_peak_interval_ms == 5000.0

    def test_unknown_option_ignored(self) -> None:
        """Test an unknown option warns and the rest still applies."""
        tracker = make_tracker()
        with pytest.warns(UserWarning, match="unknown tracker option"):
            config = tracker.configure({'stride': 0.7, 'stepLength': 0.8})
        assert config.step_length == 0.8
        assert tracker.integrator.step_length == 0.8

    def test_unknown_sensitivity_keeps_tier(self) -> None:
        """Test an unknown tier name warns and keeps the current tier."""
        tracker = make_tracker(sensitivity='high')
        walk_steps(tracker, 2)
        with pytest.warns(UserWarning, match="sensitivity must be one of"):
            config = tracker.configure({'sensitivity': 'extreme'})

        assert config.sensitivity is Sensitivity.HIGH
        assert tracker.detector.sensitivity is Sensitivity.HIGH
        assert tracker.step_count == 2

    def test_long_stride_accepted(self) -> None:
        """Test a long user stride is used as given."""
        tracker = make_tracker()
        tracker.configure({'stepLength': 1.8})
        walk_steps(tracker, 2)
        assert tracker.position.z == pytest.approx(-3.6)

    def test_construction_only_option(self) -> None:
        """Test changing a construction-only option warns and is ignored."""
        tracker = make_tracker()
        with pytest.warns(UserWarning, match="only be set when the tracker is created"):
            config = tracker.configure({'algorithm': 'threshold'})
        assert config.algorithm is DetectionAlgorithm.ADAPTIVE
        assert tracker.detector.algorithm is DetectionAlgorithm.ADAPTIVE

        with warnings.catch_warnings():
            warnings.simplefilter("error")
            tracker.configure({'algorithm': 'adaptive', 'height': 1.6})

    def test_pause_and_resume(self) -> None:
        """Test a paused tracker follows the signal but takes no steps."""
        tracker = make_tracker()
        tracker.set_enabled(False)
        walk_steps(tracker, 3)
        assert tracker.step_count == 0
        assert tracker.get_stats().sample_count > 0

        tracker.set_enabled(True)
        walk_steps(tracker, 2)
        assert tracker.step_count == 2


class TestStats(unittest.TestCase):
    """Test suite for get_stats."""

    def test_stats_snapshot(self) -> None:
        """Test the snapshot reflects detector, heading and calibration."""
        tracker = IndoorPositionTracker(TrackerConfig(algorithm='threshold'))
        tracker.ingest_orientation(10.0)
        tracker.ingest_orientation(100.0)
        tracker.ingest_motion(0.0, G, 0.0, 20.0)
        stats = tracker.get_stats()

        assert stats.algorithm is DetectionAlgorithm.THRESHOLD
        assert stats.threshold == 11.25
        assert stats.calibrated
        assert stats.heading == pytest.approx(-np.pi / 2)
        assert stats.sample_count == 1
        assert stats.filtered_magnitude == pytest.approx(G)


class TestConcurrency(unittest.TestCase):
    """Test suite for ingestion from several threads."""

    def test_two_streams_and_reset_from_threads(self) -> None:
        """Test concurrent streams and resets leave a consistent state."""
        tracker = make_tracker()
        errors: List[BaseException] = []

        def motion() -> None:
            try:
                for _ in range(20):
                    walk_steps(tracker, 2)
            except BaseException as exc:
                errors.append(exc)

        def orientation() -> None:
            try:
                for k in range(2000):
                    tracker.ingest_orientation(float(k % 360), 80.0, 0.0)
                    if k % 500 == 0:
                        tracker.reset()
            except BaseException as exc:
                errors.append(exc)

        threads = [threading.Thread(target=motion), threading.Thread(target=orientation)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        stats = tracker.get_stats()
        assert stats.step_count == tracker.detector.step_count
        assert stats.position.y == 1.6
