"""
Evaluation metrics for step detection and dead-reckoning output.

Position metrics compare estimated post-step positions against ground truth.
Step metrics compare detected step times against true footfalls, and
reference_step_indices() gives an offline cross-check of a recorded magnitude
series with scipy's batch peak finder, independent of the streaming detectors.
"""

from typing import Dict, Optional, Union

import numpy as np
from scipy import signal


def _horizontal(positions: np.ndarray) -> np.ndarray:
    positions = np.asarray(positions, dtype=float)
    if positions.ndim != 2 or positions.shape[1] not in (2, 3):
        raise ValueError(f"positions must have shape (N, 2) or (N, 3), got {positions.shape}")
    # [x, y, z] rows from a tracker trajectory; y is the constant eye height.
    return positions[:, [0, 2]] if positions.shape[1] == 3 else positions


def compute_position_errors(truth: np.ndarray, estimated: np.ndarray) -> np.ndarray:
    """
    Per-step horizontal error of a dead-reckoned track.

    Row i of either array is the position after step i. Three-column rows are
    read as [x, y, z], so IndoorPositionTracker.trajectory() can be passed
    as is.

    Args:
        truth: True post-step positions, shape (N, 2) or (N, 3).
        estimated: Estimated post-step positions, same number of rows.

    Returns:
        Horizontal error vectors estimated - truth, shape (N, 2).
    """
    truth = _horizontal(truth)
    estimated = _horizontal(estimated)
    if len(truth) != len(estimated):
        raise ValueError(
            f"step count mismatch: {len(truth)} true vs {len(estimated)} estimated positions"
        )
    return estimated - truth


def compute_rmse(errors: np.ndarray, axis: Optional[int] = None) -> Union[float, np.ndarray]:
    """
    Compute Root Mean Square Error (RMSE).

    Args:
        errors: Error vectors, shape (N, d) or (N,)
        axis: None for a scalar over everything, 0 per dimension, 1 per sample.

    Returns:
        rmse: RMSE value(s)
    """
    errors = np.asarray(errors)
    if axis is None:
        return float(np.sqrt(np.mean(errors**2)))
    return np.sqrt(np.mean(errors**2, axis=axis))


def compute_error_stats(errors: np.ndarray) -> Dict[str, float]:
    """
    Summary statistics of error magnitudes.

    Args:
        errors: Error vectors, shape (N, d) or (N,)

    Returns:
        Dictionary with 'mean', 'median', 'std', 'rmse', 'p90', 'max'.
    """
    errors = np.asarray(errors)
    if errors.size == 0:
        raise ValueError("errors must not be empty")

    if errors.ndim > 1:
        error_magnitudes = np.linalg.norm(errors, axis=1)
    else:
        error_magnitudes = np.abs(errors)

    return {
        "mean": float(np.mean(error_magnitudes)),
        "median": float(np.median(error_magnitudes)),
        "std": float(np.std(error_magnitudes)),
        "rmse": float(np.sqrt(np.mean(error_magnitudes**2))),
        "p90": float(np.percentile(error_magnitudes, 90)),
        "max": float(np.max(error_magnitudes)),
    }


def step_count_error(detected: int, true_steps: int) -> Dict[str, float]:
    """
    Absolute and relative step count error.

    Returns:
        {'missed': ..., 'extra': ..., 'relative': ...}; relative is
        |detected - true| / true (0 when both are 0).
    """
    if detected < 0 or true_steps < 0:
        raise ValueError(f"step counts must be non-negative, got {detected}, {true_steps}")
    diff = detected - true_steps
    relative = abs(diff) / true_steps if true_steps else float(diff != 0)
    return {
        "missed": float(max(-diff, 0)),
        "extra": float(max(diff, 0)),
        "relative": float(relative),
    }


def final_position_error(truth: np.ndarray, estimated: np.ndarray) -> float:
    """
    Horizontal distance between the last true and last estimated position.

    Args:
        truth: True positions, shape (N, 2); the last row is used.
        estimated: Estimated positions, shape (M, 2); the last row is used.
            Empty arrays stand for the origin.
    """
    truth = np.asarray(truth, dtype=float).reshape(-1, 2)
    estimated = np.asarray(estimated, dtype=float).reshape(-1, 2)
    p_true = truth[-1] if len(truth) else np.zeros(2)
    p_est = estimated[-1] if len(estimated) else np.zeros(2)
    return float(np.linalg.norm(p_est - p_true))


def detection_latency(
    true_times: np.ndarray,
    detected_times: np.ndarray,
    tolerance: float = 0.25,
) -> np.ndarray:
    """
    Delay of each detection behind the closest earlier true footfall.

    Args:
        true_times: True footfall times, seconds, sorted.
        detected_times: Detection times, seconds, sorted.
        tolerance: Detections more than this after their footfall (or before
            the first footfall) are reported as NaN.

    Returns:
        Latencies in seconds, shape (len(detected_times),).
    """
    true_times = np.asarray(true_times, dtype=float)
    detected_times = np.asarray(detected_times, dtype=float)
    latencies = np.full(len(detected_times), np.nan)
    if len(true_times) == 0:
        return latencies

    idx = np.searchsorted(true_times, detected_times, side='right') - 1
    valid = idx >= 0
    latencies[valid] = detected_times[valid] - true_times[idx[valid]]
    latencies[latencies > tolerance] = np.nan
    return latencies


def reference_step_indices(
    magnitude: np.ndarray,
    dt: float,
    min_peak_height: float = 10.5,
    min_peak_distance: float = 0.5,
    min_prominence: Optional[float] = None,
) -> np.ndarray:
    """
    Offline step detection on a recorded magnitude series.

    Uses scipy.signal.find_peaks with a height floor and a refractory
    distance, the batch counterpart of the streaming detectors' threshold
    floor and minimum peak interval.

    Args:
        magnitude: Acceleration magnitude series, m/s². Shape (N,).
        dt: Sample period, seconds.
        min_peak_height: Minimum peak magnitude, m/s².
        min_peak_distance: Minimum time between peaks, seconds.
        min_prominence: Optional minimum peak prominence, m/s².

    Returns:
        Indices of the detected peaks.
    """
    magnitude = np.asarray(magnitude, dtype=float)
    if magnitude.ndim != 1:
        raise ValueError(f"magnitude must be 1D, got shape {magnitude.shape}")
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")
    if min_peak_distance <= 0:
        raise ValueError(f"min_peak_distance must be positive, got {min_peak_distance}")

    distance = max(int(min_peak_distance / dt), 1)
    peak_indices, _ = signal.find_peaks(
        magnitude,
        height=min_peak_height,
        distance=distance,
        prominence=min_prominence,
    )
    return peak_indices
