"""
Tracker configuration.

TrackerConfig is an immutable value: the tracker is built from one and
configure() swaps it for an updated copy. Nothing here is fatal: out-of-range
numbers are clamped, missing numbers take the default, unknown tier or
algorithm names keep the current choice and unknown option names are dropped.
Each substitution emits a UserWarning.

Options may be given in snake_case or in the camelCase used by the platform
layer (``filterAlpha``, ``stepLength``, ...).

Example:
    >>> config = TrackerConfig.from_dict({'filterAlpha': 0.5, 'sensitivity': 'high'})
    >>> config = config.with_updates({'stepLength': 0.7})
    >>> save_config(config, 'data/sim/walk/tracker.json')
"""

import json
import warnings
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple, Union

import numpy as np

from indoor_pdr.sensors.filters import ALPHA_MAX, ALPHA_MIN
from indoor_pdr.sensors.pdr import DEFAULT_STEP_LENGTH
from indoor_pdr.sensors.step_detection import (
    DEFAULT_BASE_THRESHOLD,
    DEFAULT_FIXED_THRESHOLD,
    DEFAULT_MIN_PEAK_INTERVAL_MS,
    DetectionAlgorithm,
    Sensitivity,
    resolve_choice,
)
from indoor_pdr.sensors.types import DEFAULT_EYE_HEIGHT

# Stride is per user; only a positive floor is enforced.
STEP_LENGTH_MIN = 0.01
MIN_PEAK_INTERVAL_RANGE = (0.0, 5000.0)

OPTION_ALIASES: Dict[str, str] = {
    'algorithm': 'algorithm',
    'filterEnabled': 'filter_enabled',
    'filterAlpha': 'filter_alpha',
    'sensitivity': 'sensitivity',
    'baseThreshold': 'base_threshold',
    'fixedThreshold': 'fixed_threshold',
    'minPeakInterval': 'min_peak_interval_ms',
    'minPeakIntervalMs': 'min_peak_interval_ms',
    'prominenceCheck': 'prominence_check',
    'stepLength': 'step_length',
    'height': 'height',
    'trajectoryCapacity': 'trajectory_capacity',
    'enabled': 'enabled',
}

# Options that configure() may change on a running tracker.
RUNTIME_OPTIONS = frozenset({
    'filter_enabled',
    'filter_alpha',
    'sensitivity',
    'base_threshold',
    'fixed_threshold',
    'min_peak_interval_ms',
    'prominence_check',
    'step_length',
    'enabled',
})


@dataclass(frozen=True)
class TrackerConfig:
    """
    Construction-time and runtime settings of an IndoorPositionTracker.

    Attributes:
        algorithm: Step detection strategy.
        filter_enabled: Low-pass filter the acceleration magnitude.
        filter_alpha: Filter smoothing factor, [0.1, 1.0].
        sensitivity: Adaptive threshold tier (low / medium / high).
        base_threshold: Floor of the adaptive threshold, m/s².
        fixed_threshold: Threshold of the fixed-threshold strategy, m/s².
        min_peak_interval_ms: Minimum time between accepted steps, ms.
        prominence_check: Reject peaks that barely rise above the window minimum.
        step_length: Displacement per step, m.
        height: Fixed y coordinate of the tracked position, m.
        trajectory_capacity: Post-step positions kept for plotting.
        enabled: Accept steps (False pauses tracking but keeps the signal state).
    """

    algorithm: DetectionAlgorithm = DetectionAlgorithm.ADAPTIVE
    filter_enabled: bool = True
    filter_alpha: float = 0.8
    sensitivity: Sensitivity = Sensitivity.MEDIUM
    base_threshold: float = DEFAULT_BASE_THRESHOLD
    fixed_threshold: float = DEFAULT_FIXED_THRESHOLD
    min_peak_interval_ms: float = DEFAULT_MIN_PEAK_INTERVAL_MS
    prominence_check: bool = False
    step_length: float = DEFAULT_STEP_LENGTH
    height: float = DEFAULT_EYE_HEIGHT
    trajectory_capacity: int = 1000
    enabled: bool = True

    def __post_init__(self) -> None:
        """Normalize enum names and clamp numeric ranges."""
        object.__setattr__(
            self, 'algorithm',
            resolve_choice(DetectionAlgorithm, self.algorithm, DetectionAlgorithm.ADAPTIVE),
        )
        object.__setattr__(
            self, 'sensitivity',
            resolve_choice(Sensitivity, self.sensitivity, Sensitivity.MEDIUM),
        )

        self._clamp('filter_alpha', ALPHA_MIN, ALPHA_MAX)
        self._clamp('step_length', STEP_LENGTH_MIN, float('inf'))
        self._clamp('min_peak_interval_ms', *MIN_PEAK_INTERVAL_RANGE)
        self._clamp('base_threshold', 0.0, float('inf'))
        self._clamp('fixed_threshold', 0.0, float('inf'))
        self._clamp('trajectory_capacity', 0, float('inf'))
        object.__setattr__(self, 'trajectory_capacity', int(self.trajectory_capacity))

    def _clamp(self, name: str, low: float, high: float) -> None:
        requested = getattr(self, name)
        if requested is None or not np.isfinite(float(requested)):
            default = next(f.default for f in fields(self) if f.name == name)
            warnings.warn(
                f"{name}={requested} is not a usable number, using {default}",
                UserWarning,
                stacklevel=4,
            )
            object.__setattr__(self, name, default)
            return
        requested = float(requested)
        clamped = min(max(requested, low), high)
        if clamped != requested:
            warnings.warn(
                f"{name}={requested} is outside [{low}, {high}], using {clamped}",
                UserWarning,
                stacklevel=4,
            )
        object.__setattr__(self, name, clamped)

    @classmethod
    def from_dict(cls, options: Mapping[str, Any]) -> "TrackerConfig":
        """
        Build a configuration from an option mapping.

        Args:
            options: Option names in snake_case or camelCase.

        Returns:
            TrackerConfig with defaults for everything not given.
        """
        return cls(**normalize_options(options))

    def with_updates(self, options: Mapping[str, Any]) -> "TrackerConfig":
        """
        Return a copy with `options` applied (same rules as from_dict).

        An unknown algorithm or sensitivity name keeps the value of this
        configuration rather than the default.
        """
        updates = normalize_options(options)
        for name, choice_cls in (('algorithm', DetectionAlgorithm), ('sensitivity', Sensitivity)):
            if name in updates:
                updates[name] = resolve_choice(choice_cls, updates[name], getattr(self, name))
        return replace(self, **updates)

    def detector_settings(self) -> Dict[str, Any]:
        """Constructor arguments for create_step_detector()."""
        settings: Dict[str, Any] = {
            'filter_enabled': self.filter_enabled,
            'filter_alpha': self.filter_alpha,
            'min_peak_interval_ms': self.min_peak_interval_ms,
            'enabled': self.enabled,
        }
        if self.algorithm is DetectionAlgorithm.THRESHOLD:
            settings['threshold'] = self.fixed_threshold
        else:
            settings['base_threshold'] = self.base_threshold
            settings['sensitivity'] = self.sensitivity
            settings['prominence_check'] = self.prominence_check
        return settings

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly dictionary (enums as their names)."""
        data = asdict(self)
        data['algorithm'] = self.algorithm.value
        data['sensitivity'] = self.sensitivity.value
        return data


def normalize_options(options: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Map camelCase/snake_case option names onto TrackerConfig field names.

    Unrecognized names are dropped with a UserWarning.
    """
    field_names = {f.name for f in fields(TrackerConfig)}
    normalized: Dict[str, Any] = {}
    for key, value in options.items():
        name = OPTION_ALIASES.get(key, key)
        if name not in field_names:
            warnings.warn(f"ignoring unknown tracker option '{key}'", UserWarning, stacklevel=3)
            continue
        normalized[name] = value
    return normalized


def split_runtime_options(options: Mapping[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Split normalized options into (runtime, construction-only)."""
    normalized = normalize_options(options)
    runtime = {k: v for k, v in normalized.items() if k in RUNTIME_OPTIONS}
    fixed = {k: v for k, v in normalized.items() if k not in RUNTIME_OPTIONS}
    return runtime, fixed


def load_config(path: Union[str, Path]) -> TrackerConfig:
    """Load a TrackerConfig from a JSON file."""
    with open(path) as f:
        return TrackerConfig.from_dict(json.load(f))


def save_config(config: TrackerConfig, path: Union[str, Path]) -> None:
    """Write a TrackerConfig as indented JSON, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(config.to_dict(), f, indent=2)
