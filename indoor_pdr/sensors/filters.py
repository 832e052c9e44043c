"""
Motion filter: single-pole low-pass (EMA) on the acceleration magnitude.

    filtered_k = α · raw_k + (1 - α) · filtered_{k-1}

Smaller α gives a smoother signal with more lag. The state starts at the
gravity baseline so that the first sample of a stationary phone is not read
as a spike.
"""

import numpy as np

from indoor_pdr.sensors.types import GRAVITY_BASELINE

ALPHA_MIN = 0.1
ALPHA_MAX = 1.0


def clamp_alpha(alpha: float) -> float:
    """Clamp a smoothing factor to [ALPHA_MIN, ALPHA_MAX]."""
    return float(np.clip(alpha, ALPHA_MIN, ALPHA_MAX))


class LowPassFilter:
    """Exponentially weighted moving average of a scalar signal.

    When disabled, samples pass through unchanged but the state still follows
    them, so ``value`` always reports the magnitude the detector is using.
    """

    def __init__(
        self,
        alpha: float = 0.8,
        enabled: bool = True,
        initial: float = GRAVITY_BASELINE,
    ):
        self.alpha = clamp_alpha(alpha)
        self.enabled = enabled
        self.initial = initial
        self.value = initial

    def filter(self, raw: float) -> float:
        if self.enabled:
            self.value = self.alpha * raw + (1.0 - self.alpha) * self.value
        else:
            self.value = raw
        return self.value

    def set_alpha(self, alpha: float) -> None:
        self.alpha = clamp_alpha(alpha)

    def reset(self) -> None:
        self.value = self.initial
