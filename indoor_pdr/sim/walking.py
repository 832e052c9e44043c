"""
Synthetic phone-in-hand walking sessions.

Generates the two sensor streams a phone would deliver while its owner walks a
sequence of steps with known headings:
    - motion stream: acceleration including gravity, gravity on the device
      y axis (phone held upright), one half-sine bump per footfall, plus
      white noise
    - orientation stream: compass alpha following the heading profile,
      beta around 80° (upright), gamma around 0°

Ground truth (step times, per-step headings, post-step positions) uses the
same world convention as the tracker: heading 0 faces -z, positions [x, z].
Headings are relative to the first step, exactly like the calibrated heading.

Footfall peaks are placed on the motion sample grid, and the heading of step
i holds from half a stride before the footfall to half a stride after it,
so a detector that fires a sample or two after the peak reads the heading of
the step it is counting.

Example:
    >>> headings = corridor_heading_profile(num_legs=4, steps_per_leg=10)
    >>> session = generate_walk(headings, seed=7)
    >>> session.step_times.shape, session.positions.shape
    ((40,), (40, 2))
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Union

import numpy as np

from indoor_pdr.sensors.types import GRAVITY_BASELINE, WorldFrame


@dataclass(frozen=True)
class WalkSession:
    """
    Recorded (or simulated) sensor streams plus ground truth.

    Attributes:
        t_motion: Motion sample times, seconds. Shape (N,).
        accel: Acceleration including gravity, m/s². Shape (N, 3).
        t_orientation: Orientation sample times, seconds. Shape (M,).
        orientation_deg: [alpha, beta, gamma] in degrees, NaN = missing.
                         Shape (M, 3).
        step_times: True footfall times, seconds. Shape (S,).
        headings: True heading of each step, radians. Shape (S,).
        positions: True [x, z] after each step, meters. Shape (S, 2).
        meta: Generation parameters.
    """

    t_motion: np.ndarray
    accel: np.ndarray
    t_orientation: np.ndarray
    orientation_deg: np.ndarray
    step_times: np.ndarray
    headings: np.ndarray
    positions: np.ndarray
    meta: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate array shapes."""
        n = self.t_motion.shape[0]
        if self.t_motion.ndim != 1:
            raise ValueError(f"t_motion must be 1D array, got shape {self.t_motion.shape}")
        if self.accel.shape != (n, 3):
            raise ValueError(f"accel must have shape ({n}, 3), got {self.accel.shape}")

        m = self.t_orientation.shape[0]
        if self.t_orientation.ndim != 1:
            raise ValueError(
                f"t_orientation must be 1D array, got shape {self.t_orientation.shape}"
            )
        if self.orientation_deg.shape != (m, 3):
            raise ValueError(
                f"orientation_deg must have shape ({m}, 3), got {self.orientation_deg.shape}"
            )

        s = self.step_times.shape[0]
        if self.headings.shape != (s,):
            raise ValueError(f"headings must have shape ({s},), got {self.headings.shape}")
        if self.positions.shape != (s, 2):
            raise ValueError(f"positions must have shape ({s}, 2), got {self.positions.shape}")

    @property
    def duration(self) -> float:
        if len(self.t_motion) == 0:
            return 0.0
        return float(self.t_motion[-1] - self.t_motion[0])

    @property
    def num_steps(self) -> int:
        return int(self.step_times.shape[0])

    def without_orientation(self) -> "WalkSession":
        """Copy of the session as seen on a device with no orientation sensor."""
        return WalkSession(
            t_motion=self.t_motion,
            accel=self.accel,
            t_orientation=np.zeros(0),
            orientation_deg=np.zeros((0, 3)),
            step_times=self.step_times,
            headings=np.zeros_like(self.headings),
            positions=integrate_true_positions(
                np.zeros_like(self.headings), self.meta.get('step_length', 0.65)
            ),
            meta={**self.meta, 'orientation': False},
        )


def corridor_heading_profile(
    num_legs: int = 4,
    steps_per_leg: int = 10,
    turn_deg: float = 90.0,
) -> np.ndarray:
    """
    Per-step headings of a corridor walk turning by `turn_deg` after each leg.

    Args:
        num_legs: Number of straight legs.
        steps_per_leg: Steps per leg.
        turn_deg: Turn between legs, degrees (positive = towards +x).

    Returns:
        Headings in radians, shape (num_legs * steps_per_leg,).
    """
    if num_legs < 1 or steps_per_leg < 1:
        raise ValueError(
            f"num_legs and steps_per_leg must be positive, got {num_legs}, {steps_per_leg}"
        )
    legs = np.repeat(np.arange(num_legs), steps_per_leg)
    return np.deg2rad(turn_deg) * legs


def integrate_true_positions(headings: np.ndarray, step_length: float) -> np.ndarray:
    """Post-step positions [x, z] for steps taken along `headings` from the origin."""
    frame = WorldFrame()
    if len(headings) == 0:
        return np.zeros((0, 2))
    steps = np.array([frame.heading_to_unit_vector(h) for h in headings]) * step_length
    return np.cumsum(steps, axis=0)


def generate_walk(
    step_headings: np.ndarray,
    step_period: float = 0.6,
    step_length: float = 0.65,
    motion_rate_hz: float = 50.0,
    orientation_rate_hz: float = 20.0,
    bump_amplitude: float = 4.0,
    bump_samples: int = 6,
    accel_noise: float = 0.05,
    heading_noise_deg: float = 0.0,
    initial_alpha_deg: float = 30.0,
    lead_in: float = 1.0,
    tail: float = 1.0,
    seed: int = 42,
) -> WalkSession:
    """
    Simulate the sensor streams of a walk.

    Args:
        step_headings: Heading of each step, radians. Shape (S,).
        step_period: Time between footfalls, seconds.
        step_length: True stride, meters.
        motion_rate_hz: Accelerometer sample rate.
        orientation_rate_hz: Orientation sample rate.
        bump_amplitude: Peak footfall acceleration above gravity, m/s².
        bump_samples: Width of the half-sine footfall bump in motion samples
                      (even, so the peak lands on a sample).
        accel_noise: Accelerometer white-noise std dev per axis, m/s².
        heading_noise_deg: Compass white-noise std dev, degrees.
        initial_alpha_deg: Compass reading while facing the first heading.
        lead_in: Standing time before the first step, seconds.
        tail: Standing time after the last step, seconds.
        seed: Random seed.

    Returns:
        WalkSession with streams and ground truth.
    """
    step_headings = np.asarray(step_headings, dtype=float)
    if step_headings.ndim != 1:
        raise ValueError(f"step_headings must be 1D, got shape {step_headings.shape}")
    if step_period <= 0:
        raise ValueError(f"step_period must be positive, got {step_period}")
    if motion_rate_hz <= 0 or orientation_rate_hz <= 0:
        raise ValueError(
            f"sample rates must be positive, got {motion_rate_hz}, {orientation_rate_hz}"
        )
    if bump_samples < 2 or bump_samples % 2:
        raise ValueError(f"bump_samples must be even and >= 2, got {bump_samples}")

    rng = np.random.default_rng(seed)
    dt = 1.0 / motion_rate_hz
    num_steps = len(step_headings)
    headings = step_headings - step_headings[0] if num_steps else step_headings

    # Footfalls on the motion sample grid
    period_samples = max(int(round(step_period * motion_rate_hz)), 1)
    lead_samples = int(round(lead_in * motion_rate_hz))
    peak_idx = lead_samples + period_samples * np.arange(num_steps)
    n_motion = lead_samples + period_samples * max(num_steps - 1, 0) + int(round(tail * motion_rate_hz)) + 1
    t_motion = np.arange(n_motion) * dt

    magnitude = np.full(n_motion, GRAVITY_BASELINE)
    half = bump_samples // 2
    shape = np.sin(np.pi * np.arange(bump_samples + 1) / bump_samples)
    for k in peak_idx:
        lo = k - half
        idx = np.arange(lo, lo + bump_samples + 1)
        valid = (idx >= 0) & (idx < n_motion)
        magnitude[idx[valid]] += bump_amplitude * shape[valid]

    accel = np.zeros((n_motion, 3))
    accel[:, 1] = magnitude
    accel += rng.normal(0.0, accel_noise, accel.shape)

    step_times = t_motion[peak_idx] if num_steps else np.zeros(0)

    # Orientation stream: heading i holds on (t_i - P/2, t_i + P/2]
    t_orientation = np.arange(0.0, t_motion[-1] + 1e-9, 1.0 / orientation_rate_hz)
    if num_steps:
        boundaries = step_times[:-1] + step_period / 2
        heading_idx = np.searchsorted(boundaries, t_orientation, side='left')
        true_heading = headings[heading_idx]
    else:
        true_heading = np.zeros_like(t_orientation)
    alpha = initial_alpha_deg - np.rad2deg(true_heading)
    alpha = alpha + rng.normal(0.0, heading_noise_deg, alpha.shape) if heading_noise_deg > 0 else alpha
    alpha = np.mod(alpha, 360.0)
    beta = 80.0 + rng.normal(0.0, 1.0, alpha.shape)
    gamma = rng.normal(0.0, 1.0, alpha.shape)
    orientation_deg = np.column_stack([alpha, beta, gamma])

    return WalkSession(
        t_motion=t_motion,
        accel=accel,
        t_orientation=t_orientation,
        orientation_deg=orientation_deg,
        step_times=step_times,
        headings=headings,
        positions=integrate_true_positions(headings, step_length),
        meta={
            'step_period': step_period,
            'step_length': step_length,
            'motion_rate_hz': motion_rate_hz,
            'orientation_rate_hz': orientation_rate_hz,
            'bump_amplitude': bump_amplitude,
            'bump_samples': bump_samples,
            'accel_noise': accel_noise,
            'heading_noise_deg': heading_noise_deg,
            'initial_alpha_deg': initial_alpha_deg,
            'seed': seed,
            'orientation': True,
        },
    )


SESSION_FILES = {
    't_motion': 'time_motion.txt',
    'accel': 'accel.txt',
    't_orientation': 'time_orientation.txt',
    'orientation_deg': 'orientation.txt',
    'step_times': 'step_times.txt',
    'headings': 'ground_truth_heading.txt',
    'positions': 'ground_truth_position.txt',
}


def save_session(session: WalkSession, output_dir: Union[str, Path]) -> Path:
    """
    Write a session as whitespace-separated text arrays plus config.json.

    Args:
        session: Session to save.
        output_dir: Target directory (created if missing).

    Returns:
        The output directory.
    """
    path = Path(output_dir)
    path.mkdir(parents=True, exist_ok=True)
    for attr, filename in SESSION_FILES.items():
        np.savetxt(path / filename, getattr(session, attr), fmt='%.6f')
    with open(path / 'config.json', 'w') as f:
        json.dump(session.meta, f, indent=2)
    return path


def load_session(data_dir: Union[str, Path]) -> WalkSession:
    """
    Load a session written by save_session().

    Args:
        data_dir: Dataset directory (e.g. 'data/sim/pdr_corridor_walk').

    Returns:
        The WalkSession.
    """
    path = Path(data_dir)
    if not path.is_dir():
        raise FileNotFoundError(f"dataset directory not found: {path}")

    arrays = {}
    for attr, filename in SESSION_FILES.items():
        arrays[attr] = np.loadtxt(path / filename, ndmin=1)
    arrays['accel'] = arrays['accel'].reshape(-1, 3)
    arrays['orientation_deg'] = arrays['orientation_deg'].reshape(-1, 3)
    arrays['positions'] = arrays['positions'].reshape(-1, 2)

    meta: Dict[str, Any] = {}
    config_path = path / 'config.json'
    if config_path.exists():
        with open(config_path) as f:
            meta = json.load(f)

    return WalkSession(meta=meta, **arrays)
