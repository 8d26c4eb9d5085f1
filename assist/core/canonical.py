"""
Canonical serialization for snapshot comparison.

Snapshots built from the same events must serialize to identical bytes,
whatever the key order of the server payloads was.
"""

import json
from enum import Enum
from typing import Any, Mapping


def canonicalize(obj: Any) -> Any:
    """
    Convert nested payload data to canonical form.

    Rules:
    - mapping keys sorted alphabetically
    - tuples converted to lists
    - enum members replaced by their value
    """
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Mapping):
        return {k: canonicalize(obj[k]) for k in sorted(obj.keys())}
    if isinstance(obj, (list, tuple)):
        return [canonicalize(x) for x in obj]
    return obj


def canonical_json_bytes(obj: Any) -> bytes:
    """
    Deterministic UTF-8 JSON bytes for hashing.

    No whitespace, sorted keys, non-ASCII kept as UTF-8.
    """
    canon = canonicalize(obj)
    s = json.dumps(canon, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return s.encode("utf-8")


def canonical_json_str(obj: Any) -> str:
    return canonical_json_bytes(obj).decode("utf-8")
