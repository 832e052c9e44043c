"""
Adapter between platform sensor events and an IndoorPositionTracker.

The platform pushes two unsynchronized event streams:
    - orientation events: (timestamp, alpha, beta, gamma), degrees
    - motion events: (timestamp, acceleration including gravity or None)

SensorBridge turns them into the tracker's synchronous ingestion calls. It
derives the motion sample delta from successive timestamps, drops motion
events that carry no acceleration-including-gravity block, zero-fills a block
with missing components, forwards step updates to a listener, and reports a stream the platform cannot provide once,
while the remaining stream keeps driving the tracker (motion-only tracking
walks with the heading frozen at 0).

replay_session() feeds a recorded WalkSession through a bridge in timestamp
order, which is how examples and tests drive the tracker without a device.
"""

import warnings
from enum import Enum
from typing import Callable, List, Optional, Sequence, Set

import numpy as np
import structlog

from indoor_pdr.tracker.tracker import IndoorPositionTracker, MotionUpdate

logger = structlog.get_logger(__name__)


class SensorStream(str, Enum):
    ORIENTATION = 'orientation'
    MOTION = 'motion'


StepListener = Callable[[MotionUpdate], None]
UnavailableListener = Callable[[SensorStream, str], None]


class SensorBridge:
    """Routes timestamped platform events into a tracker.

    Args:
        tracker: The tracker instance this bridge drives.
        on_step: Optional callback for every stepped MotionUpdate.
        on_unavailable: Optional callback called once per unavailable stream
            with (stream, reason).
    """

    def __init__(
        self,
        tracker: IndoorPositionTracker,
        on_step: Optional[StepListener] = None,
        on_unavailable: Optional[UnavailableListener] = None,
    ):
        self.tracker = tracker
        self.on_step = on_step
        self.on_unavailable = on_unavailable
        self.unavailable: Set[SensorStream] = set()
        self._last_motion_s: Optional[float] = None
        self.dropped_motion_events = 0

    def on_orientation(
        self,
        alpha: Optional[float],
        beta: Optional[float] = None,
        gamma: Optional[float] = None,
    ) -> None:
        """Handle one platform orientation event."""
        self.tracker.ingest_orientation(alpha, beta, gamma)

    def on_motion(
        self,
        timestamp_s: float,
        accel_including_gravity: Optional[Sequence[Optional[float]]],
    ) -> Optional[MotionUpdate]:
        """
        Handle one platform motion event.

        Args:
            timestamp_s: Event time in seconds (any monotonic origin).
            accel_including_gravity: (x, y, z) in m/s², or None when the
                platform did not include this block in the event. Missing
                trailing components count as 0 and extra ones are ignored.

        Returns:
            The tracker's MotionUpdate, or None if the event was dropped.
        """
        if self._last_motion_s is None:
            dt_ms = 0.0
        else:
            dt_ms = max((timestamp_s - self._last_motion_s) * 1000.0, 0.0)
        self._last_motion_s = timestamp_s

        if accel_including_gravity is None:
            self.dropped_motion_events += 1
            return None
        components = list(accel_including_gravity)[:3]
        if len(components) < 3:
            logger.debug("motion_block_incomplete", components=len(components))
            components += [None] * (3 - len(components))

        ax, ay, az = components
        update = self.tracker.ingest_motion(ax, ay, az, dt_ms)
        if update.stepped and self.on_step is not None:
            self.on_step(update)
        return update

    def report_unavailable(self, stream: SensorStream, reason: str = "not supported") -> None:
        """
        Signal that the platform cannot provide `stream`.

        Only the first report per stream reaches on_unavailable; the tracker
        itself keeps running on the remaining stream.
        """
        stream = SensorStream(stream)
        if stream in self.unavailable:
            return
        self.unavailable.add(stream)
        logger.warning("sensor_stream_unavailable", stream=stream.value, reason=reason)
        warnings.warn(f"{stream.value} sensor unavailable: {reason}", UserWarning, stacklevel=2)
        if self.on_unavailable is not None:
            self.on_unavailable(stream, reason)

    def reset(self) -> None:
        """Reset the tracker and forget the previous motion timestamp."""
        self.tracker.reset()
        self._last_motion_s = None


def replay_session(bridge: SensorBridge, session) -> List[MotionUpdate]:
    """
    Replay a recorded session through `bridge` in timestamp order.

    Orientation and motion events are merged by timestamp; on equal
    timestamps the orientation event goes first so the step sees it.
    Rows of the orientation arrays that are NaN are passed as None.

    Args:
        bridge: Bridge wrapping the tracker under test.
        session: Object with arrays t_motion (N,), accel (N, 3),
                 t_orientation (M,), orientation_deg (M, 3)
                 (e.g. indoor_pdr.sim.WalkSession). Orientation may be
                 empty for motion-only sessions.

    Returns:
        The stepped MotionUpdates, in order.
    """
    t_motion = np.asarray(session.t_motion, dtype=float)
    accel = np.asarray(session.accel, dtype=float)
    t_orient = np.asarray(session.t_orientation, dtype=float)
    orient = np.asarray(session.orientation_deg, dtype=float).reshape(-1, 3)

    if accel.shape != (len(t_motion), 3):
        raise ValueError(
            f"accel must have shape ({len(t_motion)}, 3), got {accel.shape}"
        )
    if orient.shape[0] != len(t_orient):
        raise ValueError(
            f"orientation_deg must have {len(t_orient)} rows, got {orient.shape[0]}"
        )

    # kind 0 = orientation, 1 = motion; lexsort sorts by the last key first.
    times = np.concatenate([t_orient, t_motion])
    kinds = np.concatenate([np.zeros(len(t_orient), dtype=int), np.ones(len(t_motion), dtype=int)])
    rows = np.concatenate([np.arange(len(t_orient)), np.arange(len(t_motion))])
    order = np.lexsort((kinds, times))

    steps: List[MotionUpdate] = []
    for idx in order:
        row = rows[idx]
        if kinds[idx] == 0:
            alpha, beta, gamma = (None if np.isnan(v) else float(v) for v in orient[row])
            bridge.on_orientation(alpha, beta, gamma)
        else:
            update = bridge.on_motion(float(times[idx]), accel[row])
            if update is not None and update.stepped:
                steps.append(update)
    return steps
