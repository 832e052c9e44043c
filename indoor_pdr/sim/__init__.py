"""
Simulation utilities for generating synthetic walking sessions.

Modules:
    walking: Motion/orientation streams and ground truth for a step sequence
"""

from indoor_pdr.sim.walking import (
    WalkSession,
    corridor_heading_profile,
    integrate_true_positions,
    generate_walk,
    save_session,
    load_session,
)

__all__ = [
    "WalkSession",
    "corridor_heading_profile",
    "integrate_true_positions",
    "generate_walk",
    "save_session",
    "load_session",
]
