"""Indoor pedestrian dead reckoning from phone inertial sensors.

This package contains the streaming components of a step-and-heading
positioning core:
- sensors: Orientation estimator, motion filter, step detectors, integrator
- tracker: Tracker facade, configuration and the sensor event bridge
- sim: Synthetic walking sessions for replay and testing
- eval: Error metrics and offline cross-checks
- utils: Angle helpers and logging setup
"""

__version__ = "0.1.0"
