"""
Angle wrapping utilities.

Headings are kept in [-π, π] so that a compass reading crossing north
(359° -> 1°) does not show up as a full turn.
"""

import numpy as np


def wrap_angle(angle: float) -> float:
    """
    Wrap angle to [-π, π] range.

    Args:
        angle: Angle in radians (can be any value)

    Returns:
        Wrapped angle in range [-π, π]

    Example:
        >>> wrap_angle(3.5 * np.pi)  # 630° -> -90°
        -1.5707963267948966
    """
    return float(np.arctan2(np.sin(angle), np.cos(angle)))


def compass_delta_rad(reference_deg: float, current_deg: float) -> float:
    """
    Heading of `current_deg` relative to `reference_deg`, in radians.

    The platform compass angle grows counter-clockwise when seen from above,
    while the world heading grows towards +x (clockwise). The difference is
    therefore taken as reference - current.

    Example:
        >>> compass_delta_rad(30.0, 120.0)  # turned 90° counter-clockwise
        -1.5707963267948966
    """
    return wrap_angle(np.deg2rad(reference_deg - current_deg))
