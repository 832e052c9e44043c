"""
IndoorPositionTracker: the explicitly owned facade over the PDR components.

The tracker owns one OrientationEstimator, one StepDetector and one
DeadReckoningIntegrator. Orientation and motion samples arrive through two
independent ingestion functions at their own rates; they only meet when a step
is accepted, at which point the integrator reads the heading currently cached
by the estimator.

Every public operation holds the tracker lock, so a reset can never be
observed half-applied even when the two sensor streams are delivered from
different threads.

Example:
    >>> tracker = IndoorPositionTracker(TrackerConfig(step_length=0.7))
    >>> tracker.ingest_orientation(alpha=120.0, beta=80.0, gamma=0.0)
    >>> update = tracker.ingest_motion(0.3, 9.6, 2.1, dt_millis=20)
    >>> if update.stepped:
    ...     print(update.position.x, update.position.z, update.step_count)
"""

import threading
import warnings
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import numpy as np
import structlog

from indoor_pdr.sensors.orientation import OrientationEstimator
from indoor_pdr.sensors.pdr import DeadReckoningIntegrator
from indoor_pdr.sensors.step_detection import DetectionAlgorithm, create_step_detector
from indoor_pdr.sensors.types import OrientationSample, Position, StepEvent
from indoor_pdr.tracker.config import TrackerConfig, split_runtime_options

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class MotionUpdate:
    """
    Result of one ingest_motion() call.

    Attributes:
        stepped: True if the sample completed an accepted step.
        position: Position after the sample (unchanged when not stepped).
        step_count: Steps since the last reset.
        event: The accepted StepEvent, or None.
    """

    stepped: bool
    position: Position
    step_count: int
    event: Optional[StepEvent] = None


@dataclass(frozen=True)
class TrackerStats:
    """Read-only diagnostics snapshot returned by get_stats()."""

    step_count: int
    filtered_magnitude: float
    threshold: float
    std_dev: float
    sample_count: int
    heading: float
    position: Position
    algorithm: DetectionAlgorithm
    calibrated: bool


class IndoorPositionTracker:
    """Step-and-heading position tracker driven by two sensor streams.

    Args:
        config: Tracker configuration; defaults to TrackerConfig().
    """

    def __init__(self, config: Optional[TrackerConfig] = None):
        self._config = config if config is not None else TrackerConfig()
        self._lock = threading.Lock()
        self.orientation = OrientationEstimator()
        self.detector = create_step_detector(
            self._config.algorithm, **self._config.detector_settings()
        )
        self.integrator = DeadReckoningIntegrator(
            step_length=self._config.step_length,
            height=self._config.height,
            trajectory_capacity=self._config.trajectory_capacity,
        )

    @property
    def config(self) -> TrackerConfig:
        return self._config

    @property
    def position(self) -> Position:
        return self.integrator.position

    @property
    def step_count(self) -> int:
        return self.detector.step_count

    @property
    def heading(self) -> float:
        return self.orientation.heading

    def ingest_orientation(
        self,
        alpha: Optional[float],
        beta: Optional[float] = None,
        gamma: Optional[float] = None,
    ) -> None:
        """
        Feed one orientation sample (degrees; any angle may be None).

        The first sample with a usable alpha calibrates the reference heading.
        """
        with self._lock:
            self.orientation.observe_sample(OrientationSample(alpha, beta, gamma))

    def ingest_motion(
        self,
        ax: Optional[float],
        ay: Optional[float],
        az: Optional[float],
        dt_millis: Optional[float] = 0.0,
    ) -> MotionUpdate:
        """
        Feed one accelerometer sample (m/s², including gravity).

        Args:
            ax, ay, az: Acceleration components; missing values count as 0.
            dt_millis: Time since the previous motion sample, ms.

        Returns:
            MotionUpdate describing whether a step was taken and where the
            tracker is now.
        """
        with self._lock:
            event = self.detector.update(ax, ay, az, dt_millis)
            if event is None:
                return MotionUpdate(
                    stepped=False,
                    position=self.integrator.position,
                    step_count=self.detector.step_count,
                )

            heading = self.orientation.heading
            position = self.integrator.on_step(heading)
            logger.debug(
                "step_accepted",
                step=event.step_index,
                t_ms=round(event.timestamp_ms, 1),
                heading_deg=round(float(np.rad2deg(heading)), 2),
                x=round(position.x, 3),
                z=round(position.z, 3),
            )
            return MotionUpdate(
                stepped=True,
                position=position,
                step_count=self.detector.step_count,
                event=event,
            )

    def reset(self) -> None:
        """Return position, detector and heading calibration to their initial state."""
        with self._lock:
            self.integrator.reset()
            self.detector.reset()
            self.orientation.reset()
        logger.info("tracker_reset")

    def configure(self, options: Mapping[str, Any]) -> TrackerConfig:
        """
        Change runtime options; they apply to the next sample.

        Recognized options: filterEnabled, filterAlpha, sensitivity,
        stepLength, baseThreshold, fixedThreshold, minPeakInterval,
        prominenceCheck, enabled (or their snake_case names). Signal state,
        position and step count are kept.

        Unknown options, unknown tier names and construction-only options
        (algorithm, height, trajectoryCapacity) that differ from the current
        configuration are ignored with a UserWarning.

        Returns:
            The new configuration (after clamping).
        """
        runtime, fixed = split_runtime_options(options)
        for name, value in fixed.items():
            if getattr(self._config.with_updates({name: value}), name) != getattr(self._config, name):
                warnings.warn(
                    f"option '{name}' can only be set when the tracker is created; ignored",
                    UserWarning,
                    stacklevel=2,
                )

        with self._lock:
            self._config = self._config.with_updates(runtime)
            detector_keys = {k: getattr(self._config, k) for k in runtime if k != 'step_length'}
            if detector_keys:
                self.detector.configure(**detector_keys)
            if 'step_length' in runtime:
                self.integrator.step_length = self._config.step_length
            config = self._config

        logger.info("tracker_configured", **{k: getattr(config, k) for k in runtime})
        return config

    def set_enabled(self, enabled: bool) -> None:
        """Pause (False) or resume (True) step acceptance."""
        self.configure({'enabled': enabled})

    def trajectory(self) -> np.ndarray:
        """Post-step positions, shape (M, 3), columns [x, y, z]."""
        with self._lock:
            return self.integrator.trajectory()

    def get_stats(self) -> TrackerStats:
        with self._lock:
            detector_stats = self.detector.stats()
            return TrackerStats(
                step_count=detector_stats.step_count,
                filtered_magnitude=detector_stats.filtered_magnitude,
                threshold=detector_stats.threshold,
                std_dev=detector_stats.std_dev,
                sample_count=detector_stats.sample_count,
                heading=self.orientation.heading,
                position=self.integrator.position,
                algorithm=self.detector.algorithm,
                calibrated=self.orientation.calibrated,
            )
