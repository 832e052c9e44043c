"""
Unit tests for indoor_pdr/eval/metrics.py.

Run with: pytest tests/eval/test_eval_metrics.py -v
"""

import unittest

import numpy as np
import pytest

from indoor_pdr.eval import (
    compute_error_stats,
    compute_position_errors,
    compute_rmse,
    detection_latency,
    final_position_error,
    reference_step_indices,
    step_count_error,
)
from indoor_pdr.sensors import accel_magnitude_series
from indoor_pdr.sim import corridor_heading_profile, generate_walk
from indoor_pdr.tracker import IndoorPositionTracker, SensorBridge, replay_session


class TestPositionErrors(unittest.TestCase):
    """Test suite for position error metrics."""

    def test_errors_and_rmse(self) -> None:
        """Test error vectors and RMSE over all, per sample."""
        truth = np.zeros((2, 2))
        est = np.array([[3.0, 4.0], [0.0, 0.0]])
        errors = compute_position_errors(truth, est)

        np.testing.assert_array_equal(errors, est)
        assert compute_rmse(errors) == pytest.approx(np.sqrt(25.0 / 4))
        np.testing.assert_allclose(compute_rmse(errors, axis=1), [np.sqrt(12.5), 0.0])

    def test_step_count_mismatch(self) -> None:
        """Test tracks with different step counts raise error."""
        with pytest.raises(ValueError, match="step count mismatch"):
            compute_position_errors(np.zeros((2, 2)), np.zeros((3, 2)))

    def test_invalid_columns(self) -> None:
        """Test rows that are neither [x, z] nor [x, y, z] raise error."""
        with pytest.raises(ValueError, match="must have shape"):
            compute_position_errors(np.zeros((2, 4)), np.zeros((2, 4)))
        with pytest.raises(ValueError, match="must have shape"):
            compute_position_errors(np.zeros(2), np.zeros(2))

    def test_tracker_trajectory_input(self) -> None:
        """Test an [x, y, z] trajectory is compared on its horizontal columns."""
        session = generate_walk(corridor_heading_profile(num_legs=2, steps_per_leg=4), seed=4)
        tracker = IndoorPositionTracker()
        replay_session(SensorBridge(tracker), session)
        errors = compute_position_errors(session.positions, tracker.trajectory())

        assert errors.shape == (session.num_steps, 2)
        np.testing.assert_allclose(errors, 0.0, atol=1e-6)

    def test_error_stats(self) -> None:
        """Test summary statistics of error norms."""
        stats = compute_error_stats(np.array([[3.0, 4.0], [0.0, 1.0]]))
        assert stats['mean'] == pytest.approx(3.0)
        assert stats['max'] == pytest.approx(5.0)
        assert set(stats) == {'mean', 'median', 'std', 'rmse', 'p90', 'max'}

    def test_error_stats_empty(self) -> None:
        """Test empty errors raise error."""
        with pytest.raises(ValueError):
            compute_error_stats(np.zeros((0, 2)))

    def test_final_position_error(self) -> None:
        """Test last-position error, empty estimate at the origin."""
        truth = np.array([[0.0, -0.65], [0.0, -1.3]])
        assert final_position_error(truth, np.array([[0.0, -1.3]])) == pytest.approx(0.0)
        assert final_position_error(truth, np.zeros((0, 2))) == pytest.approx(1.3)


class TestStepMetrics(unittest.TestCase):
    """Test suite for step count and latency metrics."""

    def test_step_count_error(self) -> None:
        """Test missed, extra and relative step counts."""
        assert step_count_error(18, 20) == {'missed': 2.0, 'extra': 0.0, 'relative': 0.1}
        assert step_count_error(21, 20)['extra'] == 1.0
        assert step_count_error(0, 0)['relative'] == 0.0

    def test_step_count_error_negative(self) -> None:
        """Test negative counts raise error."""
        with pytest.raises(ValueError):
            step_count_error(-1, 3)

    def test_detection_latency(self) -> None:
        """Test latency per detection, NaN when unmatched."""
        latency = detection_latency(np.array([1.0, 2.0]), np.array([0.5, 1.02, 2.5]))
        assert np.isnan(latency[0])
        assert latency[1] == pytest.approx(0.02)
        assert np.isnan(latency[2])


class TestReferenceSteps(unittest.TestCase):
    """Test suite for the offline find_peaks cross-check."""

    def test_matches_simulated_footfalls(self) -> None:
        """Test find_peaks recovers every simulated footfall."""
        session = generate_walk(corridor_heading_profile(num_legs=2, steps_per_leg=6), seed=5)
        magnitude = accel_magnitude_series(session.accel)
        idx = reference_step_indices(magnitude, dt=0.02)

        assert len(idx) == session.num_steps
        np.testing.assert_allclose(session.t_motion[idx], session.step_times)

    def test_distance_merges_close_peaks(self) -> None:
        """Test the refractory distance keeps the first of two close peaks."""
        magnitude = np.full(100, 9.8)
        magnitude[[20, 30, 70]] = [13.0, 12.0, 13.0]
        idx = reference_step_indices(magnitude, dt=0.02, min_peak_distance=0.5)
        np.testing.assert_array_equal(idx, [20, 70])

    def test_invalid_inputs(self) -> None:
        """Test 2D magnitude or zero dt raises error."""
        with pytest.raises(ValueError):
            reference_step_indices(np.zeros((3, 3)), dt=0.02)
        with pytest.raises(ValueError):
            reference_step_indices(np.zeros(10), dt=0.0)
