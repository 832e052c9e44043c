"""
Streaming step detection from accelerometer samples.

Two interchangeable strategies share one per-sample pipeline and one output
contract (an optional StepEvent per sample):

    ThresholdStepDetector: rising edge across a fixed magnitude threshold.
        Cheap, but its sensitivity depends on the walker and the gait.
    AdaptiveStepDetector: local maxima above a threshold that follows the
        recent signal, max(base, mean + k·std) over a short sliding window,
        with a minimum-rise test and optional prominence rejection.

Shared pipeline (StepDetector.update):
    1. Magnitude of the raw sample, then the low-pass motion filter.
    2. Advance the detector clock by the sample delta.
    3. Push into the bounded window; refresh window statistics every
       `recompute_interval` samples.
    4. Strategy decides whether this sample completes a candidate peak.
    5. Debounce: accept only if more than `min_peak_interval_ms` has passed
       since the previous accepted step.
    6. previous magnitude / delta are updated whether or not a step was
       accepted, so the derivative stream stays continuous.

Usage:
    >>> detector = create_step_detector(DetectionAlgorithm.ADAPTIVE)
    >>> for ax, ay, az, dt_ms in samples:
    ...     event = detector.update(ax, ay, az, dt_ms)
    ...     if event is not None:
    ...         print(event.step_index, event.timestamp_ms)
"""

import warnings
from abc import ABC, abstractmethod
from collections import deque
from enum import Enum
from typing import Any, Optional

import numpy as np
import structlog

from indoor_pdr.sensors.filters import LowPassFilter
from indoor_pdr.sensors.pdr import total_accel_magnitude
from indoor_pdr.sensors.types import (
    GRAVITY_BASELINE,
    AccelerationSample,
    DetectorStats,
    StepEvent,
    finite_or_zero,
)

logger = structlog.get_logger(__name__)

DEFAULT_BASE_THRESHOLD = 10.5
DEFAULT_FIXED_THRESHOLD = 11.25
DEFAULT_MIN_PEAK_INTERVAL_MS = 500.0
WINDOW_SIZE = 10
WARMUP_SAMPLES = 5
RECOMPUTE_INTERVAL = 10
MIN_RISE = 0.25
PROMINENCE_FACTOR = 1.5

# Std coefficient at sensitivity multiplier 1.0 is this value; 'medium'
# (1.5) therefore gives mean + 1·std.
STD_COEFFICIENT_REFERENCE = 1.5


class DetectionAlgorithm(str, Enum):
    """Tagged choice of step detection strategy."""

    ADAPTIVE = 'adaptive'
    THRESHOLD = 'threshold'

    @classmethod
    def from_name(cls, name: Any) -> "DetectionAlgorithm":
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).lower())
        except ValueError:
            valid = [a.value for a in cls]
            raise ValueError(f"algorithm must be one of {valid}, got '{name}'") from None


class Sensitivity(str, Enum):
    """Named sensitivity tiers for the adaptive threshold."""

    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'

    @property
    def multiplier(self) -> float:
        return {'low': 1.0, 'medium': 1.5, 'high': 2.0}[self.value]

    @property
    def std_coefficient(self) -> float:
        """k in mean + k·std; higher sensitivity lowers the threshold."""
        return STD_COEFFICIENT_REFERENCE / self.multiplier

    @classmethod
    def from_name(cls, name: Any) -> "Sensitivity":
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).lower())
        except ValueError:
            valid = [s.value for s in cls]
            raise ValueError(f"sensitivity must be one of {valid}, got '{name}'") from None


def resolve_choice(choice_cls: Any, name: Any, current: Any) -> Any:
    """
    Parse an algorithm or sensitivity name without failing.

    An unknown name keeps `current` and emits a UserWarning.
    """
    try:
        return choice_cls.from_name(name)
    except ValueError as e:
        warnings.warn(f"{e}; keeping '{current.value}'", UserWarning, stacklevel=3)
        return current


class StepDetector(ABC):
    """Per-sample pipeline shared by all step detection strategies.

    Args:
        filter_enabled: Apply the low-pass motion filter to the magnitude.
        filter_alpha: Filter smoothing factor, clamped to [0.1, 1.0].
        min_peak_interval_ms: Minimum time between accepted steps.
        window_size: Capacity of the sliding magnitude window.
        recompute_interval: Window statistics are refreshed every this many
            samples.
        enabled: A disabled detector keeps following the signal but never
            accepts a step.
    """

    algorithm: DetectionAlgorithm

    def __init__(
        self,
        filter_enabled: bool = True,
        filter_alpha: float = 0.8,
        min_peak_interval_ms: float = DEFAULT_MIN_PEAK_INTERVAL_MS,
        window_size: int = WINDOW_SIZE,
        recompute_interval: int = RECOMPUTE_INTERVAL,
        enabled: bool = True,
    ):
        if window_size < 1:
            raise ValueError(f"window_size must be positive, got {window_size}")
        if recompute_interval < 1:
            raise ValueError(
                f"recompute_interval must be positive, got {recompute_interval}"
            )
        self.motion_filter = LowPassFilter(alpha=filter_alpha, enabled=filter_enabled)
        self.min_peak_interval_ms = float(min_peak_interval_ms)
        self.recompute_interval = recompute_interval
        self.enabled = enabled
        self.window: deque = deque(maxlen=window_size)
        self.reset()

    def reset(self) -> None:
        """Return every piece of signal state to its construction value."""
        self.motion_filter.reset()
        self.window.clear()
        self.step_count = 0
        self.sample_count = 0
        self.clock_ms = 0.0
        self.last_step_ms: Optional[float] = None
        self.previous_magnitude: Optional[float] = None
        self.previous_delta = 0.0
        self.window_mean = GRAVITY_BASELINE
        self.std_dev = 0.0
        self._reset_strategy()

    @abstractmethod
    def _reset_strategy(self) -> None:
        """Reset strategy-specific state; must set self.threshold."""
        pass

    @abstractmethod
    def _candidate_peak(self, magnitude: float, delta: float) -> Optional[float]:
        """
        Decide whether the current sample completes a candidate step.

        Args:
            magnitude: Filtered magnitude of the current sample.
            delta: magnitude - previous magnitude (0 for the first sample).

        Returns:
            Peak magnitude of the candidate, or None.
        """
        pass

    def _on_window_stats(self) -> None:
        """Hook called after window_mean / std_dev are refreshed."""
        pass

    @property
    def filtered_magnitude(self) -> float:
        return self.motion_filter.value

    def update(
        self,
        ax: Optional[float],
        ay: Optional[float],
        az: Optional[float],
        dt_ms: Optional[float] = 0.0,
    ) -> Optional[StepEvent]:
        """
        Process one accelerometer sample.

        Args:
            ax, ay, az: Acceleration including gravity, m/s². Missing or
                        non-finite components count as 0.
            dt_ms: Time since the previous sample, ms. Missing or negative
                   deltas count as 0.

        Returns:
            A StepEvent if this sample completed an accepted step, else None.
        """
        sample = AccelerationSample(ax, ay, az, dt_ms)
        magnitude = self.motion_filter.filter(total_accel_magnitude(sample.as_array()))

        self.clock_ms += max(finite_or_zero(sample.dt_ms), 0.0)
        self.sample_count += 1
        self.window.append(magnitude)
        if self.sample_count % self.recompute_interval == 0:
            self._refresh_window_stats()

        delta = 0.0 if self.previous_magnitude is None else magnitude - self.previous_magnitude
        peak = self._candidate_peak(magnitude, delta)

        event = None
        if peak is not None and self.enabled:
            if self._interval_elapsed():
                event = self._accept(peak)
            else:
                logger.debug(
                    "step_candidate_debounced",
                    clock_ms=self.clock_ms,
                    since_last_ms=self.clock_ms - self.last_step_ms,
                )

        self.previous_delta = delta
        self.previous_magnitude = magnitude
        return event

    def _refresh_window_stats(self) -> None:
        values = np.fromiter(self.window, dtype=float)
        self.window_mean = float(np.mean(values))
        self.std_dev = float(np.std(values))
        self._on_window_stats()

    def _interval_elapsed(self) -> bool:
        if self.last_step_ms is None:
            return True
        return self.clock_ms - self.last_step_ms > self.min_peak_interval_ms

    def _accept(self, peak: float) -> StepEvent:
        self.step_count += 1
        self.last_step_ms = self.clock_ms
        return StepEvent(
            timestamp_ms=self.clock_ms,
            step_index=self.step_count,
            magnitude=peak,
        )

    def configure(self, **settings: Any) -> None:
        """
        Change detector settings without touching signal state.

        Recognized keys: filter_enabled, filter_alpha, min_peak_interval_ms,
        enabled, plus the strategy's own keys. Values are expected to be
        validated/clamped by the caller (see TrackerConfig).
        """
        for key, value in settings.items():
            if key == 'filter_enabled':
                self.motion_filter.enabled = bool(value)
            elif key == 'filter_alpha':
                self.motion_filter.set_alpha(value)
            elif key == 'min_peak_interval_ms':
                self.min_peak_interval_ms = float(value)
            elif key == 'enabled':
                self.enabled = bool(value)
            elif not self._configure_strategy(key, value):
                raise ValueError(
                    f"unknown setting '{key}' for {type(self).__name__}"
                )

    def _configure_strategy(self, key: str, value: Any) -> bool:
        return False

    def stats(self) -> DetectorStats:
        return DetectorStats(
            step_count=self.step_count,
            filtered_magnitude=self.filtered_magnitude,
            threshold=self.threshold,
            std_dev=self.std_dev,
            sample_count=self.sample_count,
            clock_ms=self.clock_ms,
        )


class ThresholdStepDetector(StepDetector):
    """Fixed-threshold rising-edge detector.

    A step is a sample whose magnitude rises above `threshold` while the
    previous sample was below it. Low cost fallback for the adaptive
    detector.
    """

    algorithm = DetectionAlgorithm.THRESHOLD

    def __init__(self, threshold: float = DEFAULT_FIXED_THRESHOLD, **kwargs: Any):
        self.fixed_threshold = float(threshold)
        super().__init__(**kwargs)

    def _reset_strategy(self) -> None:
        self.threshold = self.fixed_threshold

    def _candidate_peak(self, magnitude: float, delta: float) -> Optional[float]:
        previous = self.previous_magnitude if self.previous_magnitude is not None else 0.0
        if magnitude > self.threshold and previous < self.threshold:
            return magnitude
        return None

    def _configure_strategy(self, key: str, value: Any) -> bool:
        if key == 'fixed_threshold':
            self.fixed_threshold = float(value)
            self.threshold = self.fixed_threshold
            return True
        # The fixed detector has no adaptive floor or tiers.
        return key in ('base_threshold', 'sensitivity', 'prominence_check')


class AdaptiveStepDetector(StepDetector):
    """Local-maximum detector with a threshold that adapts to gait intensity.

    The threshold is max(base_threshold, mean + k·std) of the sliding window,
    refreshed every `recompute_interval` samples, so it never collapses below
    the base threshold while the phone is still.

    A candidate is declared on the sample after a local maximum when:
        - the current magnitude exceeds the threshold,
        - the signal rose into the maximum (previous delta > 0) and falls
          after it (current delta < 0),
        - the rise was larger than `min_rise`.

    A sharp spike that drops straight back below the threshold is therefore
    not a step. The event carries the magnitude of the maximum itself.

    With prominence_check enabled the candidate must also stand more than
    `prominence_factor`·std above the window minimum.

    Args:
        base_threshold: Threshold floor, m/s².
        sensitivity: Tier controlling k (see Sensitivity).
        prominence_check: Enable prominence rejection.
        warmup_samples: No candidates until the window holds this many samples.
        min_rise: Minimum |previous delta| of a peak, m/s².
        prominence_factor: Prominence requirement in window std units.
        **kwargs: StepDetector arguments.
    """

    algorithm = DetectionAlgorithm.ADAPTIVE

    def __init__(
        self,
        base_threshold: float = DEFAULT_BASE_THRESHOLD,
        sensitivity: Sensitivity = Sensitivity.MEDIUM,
        prominence_check: bool = False,
        warmup_samples: int = WARMUP_SAMPLES,
        min_rise: float = MIN_RISE,
        prominence_factor: float = PROMINENCE_FACTOR,
        **kwargs: Any,
    ):
        self.base_threshold = float(base_threshold)
        self.sensitivity = resolve_choice(Sensitivity, sensitivity, Sensitivity.MEDIUM)
        self.prominence_check = prominence_check
        self.warmup_samples = warmup_samples
        self.min_rise = min_rise
        self.prominence_factor = prominence_factor
        super().__init__(**kwargs)
        if warmup_samples > self.window.maxlen:
            raise ValueError(
                f"warmup_samples ({warmup_samples}) cannot exceed window size "
                f"({self.window.maxlen})"
            )

    def _reset_strategy(self) -> None:
        self.threshold = self.base_threshold

    def _on_window_stats(self) -> None:
        k = self.sensitivity.std_coefficient
        self.threshold = max(self.base_threshold, self.window_mean + k * self.std_dev)

    def _candidate_peak(self, magnitude: float, delta: float) -> Optional[float]:
        if len(self.window) < self.warmup_samples:
            return None

        peak = self.previous_magnitude
        if peak is None or magnitude <= self.threshold:
            return None
        if not (self.previous_delta > 0 and delta < 0):
            return None
        if abs(self.previous_delta) <= self.min_rise:
            return None
        if self.prominence_check and not self._is_prominent(peak):
            logger.debug("step_candidate_not_prominent", peak=round(peak, 3))
            return None
        return peak

    def _is_prominent(self, peak: float) -> bool:
        values = np.fromiter(self.window, dtype=float)
        return peak - float(np.min(values)) > self.prominence_factor * float(np.std(values))

    def _configure_strategy(self, key: str, value: Any) -> bool:
        if key == 'base_threshold':
            self.base_threshold = float(value)
            self.threshold = max(self.base_threshold, self.threshold)
        elif key == 'sensitivity':
            self.sensitivity = resolve_choice(Sensitivity, value, self.sensitivity)
        elif key == 'prominence_check':
            self.prominence_check = bool(value)
        elif key == 'fixed_threshold':
            pass
        else:
            return False
        return True


def create_step_detector(
    algorithm: DetectionAlgorithm = DetectionAlgorithm.ADAPTIVE,
    **kwargs: Any,
) -> StepDetector:
    """
    Build a step detector for the chosen strategy.

    Args:
        algorithm: DetectionAlgorithm or its name ('adaptive' / 'threshold').
                   Unknown names fall back to adaptive with a UserWarning.
        **kwargs: Arguments of the strategy's constructor.

    Returns:
        A freshly reset detector.
    """
    algorithm = resolve_choice(DetectionAlgorithm, algorithm, DetectionAlgorithm.ADAPTIVE)
    if algorithm is DetectionAlgorithm.THRESHOLD:
        return ThresholdStepDetector(**kwargs)
    return AdaptiveStepDetector(**kwargs)
