"""
Evaluation utilities: position error metrics and step detection checks.
"""

from indoor_pdr.eval.metrics import (
    compute_position_errors,
    compute_rmse,
    compute_error_stats,
    step_count_error,
    final_position_error,
    detection_latency,
    reference_step_indices,
)

__all__ = [
    "compute_position_errors",
    "compute_rmse",
    "compute_error_stats",
    "step_count_error",
    "final_position_error",
    "detection_latency",
    "reference_step_indices",
]
