"""
Unit tests for indoor_pdr/sensors/types.py.

Tests cover:
    - World frame heading convention
    - Immutability of sample/event dataclasses
    - Substitution of missing sensor values

Run with: pytest tests/sensors/test_sensor_types.py -v
"""

import unittest
from dataclasses import FrozenInstanceError

import numpy as np
import pytest

from indoor_pdr.sensors.types import (
    DEFAULT_EYE_HEIGHT,
    AccelerationSample,
    Position,
    StepEvent,
    WorldFrame,
    finite_or_zero,
)


class TestWorldFrame(unittest.TestCase):
    """Test suite for the heading-to-direction convention."""

    def test_heading_zero_faces_negative_z(self) -> None:
        """Test heading 0 points along -z."""
        u = WorldFrame().heading_to_unit_vector(0.0)
        np.testing.assert_allclose(u, [0.0, -1.0], atol=1e-12)

    def test_heading_quarter_turn_faces_positive_x(self) -> None:
        """Test heading +90° points along +x."""
        u = WorldFrame().heading_to_unit_vector(np.pi / 2)
        np.testing.assert_allclose(u, [1.0, 0.0], atol=1e-12)

    def test_unit_length_for_any_heading(self) -> None:
        """Test the direction is a unit vector."""
        frame = WorldFrame()
        for heading in np.linspace(-np.pi, np.pi, 17):
            assert np.isclose(np.linalg.norm(frame.heading_to_unit_vector(heading)), 1.0)

    def test_unsupported_axes_rejected(self) -> None:
        """Test an unsupported axis convention raises error."""
        with pytest.raises(ValueError, match="unsupported world frame"):
            WorldFrame(forward_axis='+y')


class TestSampleTypes(unittest.TestCase):
    """Test suite for sample, event and position records."""

    def test_default_position_is_origin_at_eye_height(self) -> None:
        """Test the default position."""
        p = Position()
        assert p.as_tuple() == (0.0, DEFAULT_EYE_HEIGHT, 0.0)
        np.testing.assert_array_equal(p.horizontal(), [0.0, 0.0])

    def test_step_event_is_frozen(self) -> None:
        """Test StepEvent cannot be modified."""
        event = StepEvent(timestamp_ms=500.0, step_index=1, magnitude=12.3)
        with pytest.raises(FrozenInstanceError):
            event.step_index = 2

    def test_acceleration_sample_missing_components(self) -> None:
        """Test missing components become 0 in as_array()."""
        sample = AccelerationSample(x=None, y=9.8, z=float('nan'))
        np.testing.assert_array_equal(sample.as_array(), [0.0, 9.8, 0.0])


class TestFiniteOrZero(unittest.TestCase):
    """Test suite for missing-value substitution."""

    def test_substitutes_zero(self) -> None:
        """Test None, NaN and inf become 0."""
        assert finite_or_zero(None) == 0.0
        assert finite_or_zero(float('nan')) == 0.0
        assert finite_or_zero(float('inf')) == 0.0

    def test_keeps_finite_values(self) -> None:
        """Test finite values pass through as float."""
        assert finite_or_zero(-3.5) == -3.5
        assert isinstance(finite_or_zero(np.float32(2.0)), float)
