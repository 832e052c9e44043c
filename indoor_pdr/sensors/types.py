"""
Data structures for the streaming PDR core.

This module defines the shared data types used by the orientation estimator,
the step detectors and the dead-reckoning integrator:
    - World frame convention (which axis a zero heading points along)
    - Raw sensor samples (orientation angles, acceleration incl. gravity)
    - Step events and 2D positions produced by the core
    - Diagnostic snapshots

Samples are ephemeral and immutable. Positions are immutable snapshots of the
integrator's internal state; the integrator itself keeps the mutable copy.

Frame Conventions:
    - Device frame: phone axes as reported by the platform motion API
    - World frame: x = right, y = up, z = backward; the walker starts facing -z
    - Heading 0 faces -z, heading +π/2 faces +x

Time Base Convention:
    Sample deltas and step timestamps are float milliseconds measured on the
    detector's own clock (sum of the deltas it has been fed).
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


GRAVITY_BASELINE = 9.8
"""Magnitude (m/s²) the motion filter starts from and resets to."""

DEFAULT_EYE_HEIGHT = 1.6
"""Fixed height (m) of the tracked position above the floor."""


@dataclass(frozen=True)
class WorldFrame:
    """
    Horizontal world frame used to turn a heading into a walking direction.

    Attributes:
        forward_axis: Axis the walker faces at heading 0. Only '-z' is
                      supported; kept explicit so positions can be labelled.
        right_axis: Axis reached by turning +π/2 from forward.

    Example:
        >>> frame = WorldFrame()
        >>> frame.heading_to_unit_vector(0.0)        # [0, -1] -> facing -z
        >>> frame.heading_to_unit_vector(np.pi / 2)  # [1, 0]  -> facing +x
    """

    forward_axis: str = '-z'
    right_axis: str = '+x'

    def __post_init__(self) -> None:
        if (self.forward_axis, self.right_axis) != ('-z', '+x'):
            raise ValueError(
                f"unsupported world frame: forward={self.forward_axis}, "
                f"right={self.right_axis}"
            )

    def heading_to_unit_vector(self, heading_rad: float) -> np.ndarray:
        """
        Convert a heading angle to the unit walking direction in the (x, z) plane.

        Args:
            heading_rad: Heading angle in radians.

        Returns:
            Unit vector [forward_x, forward_z], shape (2,).
        """
        return np.array([np.sin(heading_rad), -np.cos(heading_rad)])


@dataclass(frozen=True)
class OrientationSample:
    """
    One device-orientation reading.

    Attributes:
        alpha: Rotation about the vertical axis (compass), degrees in [0, 360).
               None before the platform has its first fix.
        beta: Front-back tilt, degrees in [-180, 180).
        gamma: Left-right tilt, degrees in [-90, 90).
    """

    alpha: Optional[float] = None
    beta: Optional[float] = None
    gamma: Optional[float] = None


@dataclass(frozen=True)
class AccelerationSample:
    """
    One accelerometer reading including gravity.

    Attributes:
        x, y, z: Acceleration components in the device frame. Units: m/s².
                 Missing components arrive as None.
        dt_ms: Time since the previous motion sample. Units: milliseconds.
    """

    x: Optional[float] = None
    y: Optional[float] = None
    z: Optional[float] = None
    dt_ms: Optional[float] = 0.0

    def as_array(self) -> np.ndarray:
        """Return [x, y, z] with missing or non-finite components set to 0."""
        return np.array([finite_or_zero(v) for v in (self.x, self.y, self.z)])


@dataclass(frozen=True)
class StepEvent:
    """
    A footfall accepted by a step detector.

    Attributes:
        timestamp_ms: Detector clock when the step was accepted.
        step_index: 1-based count of the step since the last reset.
        magnitude: Peak (filtered) acceleration magnitude that triggered it.
    """

    timestamp_ms: float
    step_index: int
    magnitude: float


@dataclass(frozen=True)
class Position:
    """
    Tracked position in the world frame. Units: meters.

    Attributes:
        x: Right (+) / left (-) of the start point.
        y: Height above the floor; fixed for the tracker's lifetime.
        z: Behind (+) / in front of (-) the start point.
    """

    x: float = 0.0
    y: float = DEFAULT_EYE_HEIGHT
    z: float = 0.0

    def horizontal(self) -> np.ndarray:
        """Return the horizontal components as an array [x, z]."""
        return np.array([self.x, self.z])

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class DetectorStats:
    """
    Diagnostic snapshot of a step detector.

    Attributes:
        step_count: Steps accepted since the last reset.
        filtered_magnitude: Current low-pass filtered magnitude. Units: m/s².
        threshold: Detection threshold in use. Units: m/s².
        std_dev: Standard deviation of the window at the last recompute.
        sample_count: Motion samples processed since the last reset.
        clock_ms: Detector clock.
    """

    step_count: int
    filtered_magnitude: float
    threshold: float
    std_dev: float
    sample_count: int
    clock_ms: float


def finite_or_zero(value: Optional[float]) -> float:
    """Substitute zero for a missing or non-finite sensor value."""
    if value is None:
        return 0.0
    value = float(value)
    if not np.isfinite(value):
        return 0.0
    return value
