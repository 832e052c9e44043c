"""
Tracker facade, configuration and sensor event bridge.

Modules:
    config: TrackerConfig and JSON load/save
    tracker: IndoorPositionTracker (ingest_orientation, ingest_motion,
             reset, configure, get_stats)
    bridge: SensorBridge adapter and recorded-session replay
"""

from indoor_pdr.tracker.config import (
    TrackerConfig,
    normalize_options,
    load_config,
    save_config,
)
from indoor_pdr.tracker.tracker import (
    IndoorPositionTracker,
    MotionUpdate,
    TrackerStats,
)
from indoor_pdr.tracker.bridge import (
    SensorBridge,
    SensorStream,
    replay_session,
)

__all__ = [
    "TrackerConfig",
    "normalize_options",
    "load_config",
    "save_config",
    "IndoorPositionTracker",
    "MotionUpdate",
    "TrackerStats",
    "SensorBridge",
    "SensorStream",
    "replay_session",
]
