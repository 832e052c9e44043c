"""
Orientation estimator: calibrated heading from device-orientation samples.

The platform reports absolute Euler angles (alpha, beta, gamma) in degrees.
Only alpha (rotation about the vertical axis) matters for walking direction.
The first usable alpha becomes the reference heading, so the walker's
initial facing direction is heading 0 (the world's -z axis):

    heading = wrap(radians(alpha_ref - alpha))

The reference is captured once. A noisy first sample offsets the whole session
until reset(); this is accepted, as is every other form of degraded accuracy.
Missing angles never raise.
"""

from typing import Optional, Tuple

import numpy as np
import structlog

from indoor_pdr.sensors.types import OrientationSample, finite_or_zero
from indoor_pdr.utils.angles import compass_delta_rad, wrap_angle

logger = structlog.get_logger(__name__)


class OrientationEstimator:
    """Tracks the latest orientation sample and derives a calibrated heading.

    Attributes:
        reference_alpha_deg: Compass angle captured from the first sample with
            a defined alpha, or None before calibration.
        heading: Calibrated heading in radians. 0 until calibrated.
        alpha, beta, gamma: Latest angles in degrees (missing -> 0).
        sample_count: Orientation samples observed since construction/reset.
    """

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        """Forget the reference heading and all cached angles."""
        self.reference_alpha_deg: Optional[float] = None
        self.heading = 0.0
        self.alpha = 0.0
        self.beta = 0.0
        self.gamma = 0.0
        self.sample_count = 0

    @property
    def calibrated(self) -> bool:
        return self.reference_alpha_deg is not None

    def observe(
        self,
        alpha: Optional[float],
        beta: Optional[float] = None,
        gamma: Optional[float] = None,
    ) -> float:
        """
        Consume one orientation sample.

        Args:
            alpha: Compass angle in degrees, or None before the first fix.
            beta: Front-back tilt in degrees, or None.
            gamma: Left-right tilt in degrees, or None.

        Returns:
            The heading in radians after this sample. A sample without a
            usable alpha leaves the heading unchanged.
        """
        self.sample_count += 1
        self.beta = finite_or_zero(beta)
        self.gamma = finite_or_zero(gamma)

        if alpha is None or not np.isfinite(alpha):
            self.alpha = 0.0
            return self.heading

        self.alpha = float(alpha)
        if self.reference_alpha_deg is None:
            self.reference_alpha_deg = self.alpha
            logger.info("reference_heading_calibrated", alpha_deg=round(self.alpha, 2))

        # Replaced in one assignment; the integrator reads whatever is cached.
        self.heading = compass_delta_rad(self.reference_alpha_deg, self.alpha)
        return self.heading

    def observe_sample(self, sample: OrientationSample) -> float:
        return self.observe(sample.alpha, sample.beta, sample.gamma)

    def device_attitude(self) -> Tuple[float, float, float]:
        """
        Calibrated Euler angles for a camera that looks through the phone.

        Intrinsic Y-X-Z order, radians:
            pitch = beta - 90°   (phone held upright looks at the horizon)
            yaw   = alpha - alpha_ref
            roll  = -gamma

        Returns:
            Tuple (pitch, yaw, roll).
        """
        reference = self.reference_alpha_deg or 0.0
        pitch = float(np.deg2rad(self.beta)) - np.pi / 2
        yaw = wrap_angle(np.deg2rad(self.alpha - reference))
        roll = -float(np.deg2rad(self.gamma))
        return pitch, yaw, roll
