"""
Replay recorded pipeline runs.

Replay folds a recorded event sequence into its snapshot.
Must be 100% deterministic: same events -> same snapshot.
"""

from .loader import load_events
from .runner import ReplayResult, replay
from .snapshot import compute_snapshot_hash, serialize_snapshot

__all__ = [
    "ReplayResult",
    "replay",
    "load_events",
    "compute_snapshot_hash",
    "serialize_snapshot",
]
