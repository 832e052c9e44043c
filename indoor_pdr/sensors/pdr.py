"""
Pedestrian Dead Reckoning (PDR): acceleration magnitude and position update.

This module implements the step-and-heading half of the core:
    - Acceleration magnitude, the orientation-free signal used for step detection
    - 2D position update from one accepted step
    - DeadReckoningIntegrator, the stateful accumulator owned by the tracker

Every accepted step moves the position by a fixed step length along the
heading cached at acceptance time:

    p_k = p_{k-1} + L · [sin(ψ), -cos(ψ)]

There is no smoothing and no outlier rejection. Position error grows with
step-length error and heading error.

Frame Conventions:
    - World frame: x = right, z = backward, y = up (see WorldFrame)
    - Heading 0 faces -z; heading π/2 faces +x
"""

from collections import deque
from typing import Optional

import numpy as np

from indoor_pdr.sensors.types import (
    DEFAULT_EYE_HEIGHT,
    Position,
    WorldFrame,
)

DEFAULT_STEP_LENGTH = 0.65
"""Stride of an average adult walker, meters."""


def total_accel_magnitude(accel: np.ndarray) -> float:
    """
    Compute total acceleration magnitude from a 3D accelerometer measurement.

        a_mag = ||a|| = √(ax² + ay² + az²)

    Peaks in a_mag correspond to foot strikes. The magnitude removes the
    dependence on how the phone is held.

    Args:
        accel: Accelerometer measurement including gravity.
               Shape: (3,). Units: m/s².

    Returns:
        Acceleration magnitude, m/s² (always non-negative).

    Example:
        >>> total_accel_magnitude(np.array([0.0, 0.0, -9.81]))  # 9.81
        >>> total_accel_magnitude(np.array([3.0, 4.0, 0.0]))    # 5.0
    """
    if accel.shape != (3,):
        raise ValueError(f"accel must have shape (3,), got {accel.shape}")

    return float(np.linalg.norm(accel))


def accel_magnitude_series(accel_series: np.ndarray) -> np.ndarray:
    """
    Row-wise acceleration magnitude of a recorded (N, 3) series.

    Args:
        accel_series: Accelerometer samples including gravity. Shape (N, 3).

    Returns:
        Magnitudes, shape (N,).
    """
    if accel_series.ndim != 2 or accel_series.shape[1] != 3:
        raise ValueError(
            f"accel_series must have shape (N, 3), got {accel_series.shape}"
        )
    return np.linalg.norm(accel_series, axis=1)


def pdr_step_update(
    p_prev_xz: np.ndarray,
    step_len: float,
    heading_rad: float,
    frame: Optional[WorldFrame] = None,
) -> np.ndarray:
    """
    Update the horizontal position from one detected step.

        p_k = p_{k-1} + L · u(ψ),   u(ψ) = [sin(ψ), -cos(ψ)]

    Args:
        p_prev_xz: Position before the step, [x, z]. Shape (2,). Units: m.
        step_len: Step length. Units: m. Must be non-negative.
        heading_rad: Heading at step time. Units: radians.
        frame: World frame convention. Default: WorldFrame().

    Returns:
        Position after the step, [x, z]. Shape (2,).

    Example:
        >>> pdr_step_update(np.zeros(2), 0.65, 0.0)        # [0, -0.65]
        >>> pdr_step_update(np.zeros(2), 0.65, np.pi / 2)  # [0.65, 0]
    """
    if p_prev_xz.shape != (2,):
        raise ValueError(f"p_prev_xz must have shape (2,), got {p_prev_xz.shape}")
    if step_len < 0:
        raise ValueError(f"step_len must be non-negative, got {step_len}")

    if frame is None:
        frame = WorldFrame()

    return p_prev_xz + step_len * frame.heading_to_unit_vector(heading_rad)


class DeadReckoningIntegrator:
    """Accumulates step displacements into a 2D position.

    The position is owned exclusively by the integrator and is changed only
    by on_step() and reset(). Step counting belongs to the step detector.

    Args:
        step_length: Displacement per step in meters.
        height: Fixed y coordinate reported with every position.
        trajectory_capacity: Number of post-step positions kept for
            trajectory(); 0 disables the history.
        frame: World frame convention.
    """

    def __init__(
        self,
        step_length: float = DEFAULT_STEP_LENGTH,
        height: float = DEFAULT_EYE_HEIGHT,
        trajectory_capacity: int = 1000,
        frame: Optional[WorldFrame] = None,
    ):
        if step_length < 0:
            raise ValueError(f"step_length must be non-negative, got {step_length}")
        if trajectory_capacity < 0:
            raise ValueError(
                f"trajectory_capacity must be non-negative, got {trajectory_capacity}"
            )
        self.step_length = step_length
        self.height = height
        self.frame = frame if frame is not None else WorldFrame()
        self._history: deque = deque(maxlen=trajectory_capacity)
        self._p_xz = np.zeros(2)

    @property
    def position(self) -> Position:
        return Position(x=float(self._p_xz[0]), y=self.height, z=float(self._p_xz[1]))

    def on_step(self, heading_rad: float) -> Position:
        """
        Move one step along `heading_rad`.

        Args:
            heading_rad: Heading cached at step-acceptance time, radians.

        Returns:
            The position after the step.
        """
        self._p_xz = pdr_step_update(self._p_xz, self.step_length, heading_rad, self.frame)
        if self._history.maxlen:
            self._history.append(self._p_xz.copy())
        return self.position

    def trajectory(self) -> np.ndarray:
        """
        Positions recorded after each step, oldest first.

        Returns:
            Array of shape (M, 3) with columns [x, y, z]; M is bounded by
            trajectory_capacity.
        """
        if not self._history:
            return np.zeros((0, 3))
        xz = np.asarray(self._history)
        return np.column_stack([xz[:, 0], np.full(len(xz), self.height), xz[:, 1]])

    def reset(self) -> None:
        """Return to the origin and forget the trajectory."""
        self._p_xz = np.zeros(2)
        self._history.clear()
