"""
Streaming sensor-processing components of the PDR core.

Modules:
    types: Sample, event, position and diagnostics data structures
    orientation: Calibrated heading from device-orientation samples
    filters: Single-pole low-pass motion filter
    step_detection: Fixed-threshold and adaptive step detectors
    pdr: Acceleration magnitude, position update, dead-reckoning integrator

Design principles:
    - Every component is stateful and updated one sample at a time
    - Samples and events are frozen dataclasses; component state is mutable
    - Missing sensor values degrade accuracy, they never raise
"""

from indoor_pdr.sensors.types import (
    GRAVITY_BASELINE,
    DEFAULT_EYE_HEIGHT,
    WorldFrame,
    OrientationSample,
    AccelerationSample,
    StepEvent,
    Position,
    DetectorStats,
)

from indoor_pdr.sensors.orientation import OrientationEstimator

from indoor_pdr.sensors.filters import LowPassFilter, clamp_alpha

from indoor_pdr.sensors.step_detection import (
    DetectionAlgorithm,
    Sensitivity,
    StepDetector,
    ThresholdStepDetector,
    AdaptiveStepDetector,
    create_step_detector,
)

from indoor_pdr.sensors.pdr import (
    DEFAULT_STEP_LENGTH,
    total_accel_magnitude,
    accel_magnitude_series,
    pdr_step_update,
    DeadReckoningIntegrator,
)

__all__ = [
    # Data types
    "GRAVITY_BASELINE",
    "DEFAULT_EYE_HEIGHT",
    "WorldFrame",
    "OrientationSample",
    "AccelerationSample",
    "StepEvent",
    "Position",
    "DetectorStats",
    # Orientation
    "OrientationEstimator",
    # Motion filter
    "LowPassFilter",
    "clamp_alpha",
    # Step detection
    "DetectionAlgorithm",
    "Sensitivity",
    "StepDetector",
    "ThresholdStepDetector",
    "AdaptiveStepDetector",
    "create_step_detector",
    # Dead reckoning
    "DEFAULT_STEP_LENGTH",
    "total_accel_magnitude",
    "accel_magnitude_series",
    "pdr_step_update",
    "DeadReckoningIntegrator",
]
