"""
Deterministic snapshot serialization utilities.

Ensures the same snapshot always produces the same bytes, so snapshots
from two folds can be compared by hash.
"""

import hashlib
from typing import Optional

from ..core.canonical import canonical_json_bytes
from ..core.run import RunSnapshot


def serialize_snapshot(snapshot: Optional[RunSnapshot]) -> bytes:
    """
    Serialize a snapshot to canonical JSON bytes.

    None (no run started) serializes as JSON null.
    """
    return canonical_json_bytes(snapshot.to_dict() if snapshot is not None else None)


def compute_snapshot_hash(snapshot: Optional[RunSnapshot]) -> str:
    """
    Compute SHA-256 hash of a snapshot.

    Returns:
        Hex string (64 characters)
    """
    return hashlib.sha256(serialize_snapshot(snapshot)).hexdigest()
