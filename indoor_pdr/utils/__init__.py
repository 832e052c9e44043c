"""Shared helpers: angle handling and logging setup."""

from indoor_pdr.utils.angles import wrap_angle, compass_delta_rad
from indoor_pdr.utils.log_setup import configure_logging

__all__ = [
    "wrap_angle",
    "compass_delta_rad",
    "configure_logging",
]
