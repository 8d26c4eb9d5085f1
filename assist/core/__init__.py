"""
Core pipeline run primitives.

This module provides the pure building blocks of run tracking:
- Event: Immutable server-pushed run events
- RunSnapshot: Folded, immutable view of a run
- fold: Pure reducer from (snapshot, event) to snapshot
- PipelineRunOptions: Validated launch options
- Canonical: Deterministic serialization for snapshot comparison
"""

from .events import Event, EventType, TERMINAL_EVENT_TYPES
from .run import RunSnapshot, Stage, StageRecord
from .options import PipelineRunOptions, coerce_options, text_run
from .reducer import AnomalySink, fold, fold_all, start_run
from .canonical import canonicalize, canonical_json_bytes, canonical_json_str
from .errors import (
    AssistError,
    AuthenticationError,
    InvalidOptionsError,
    MalformedEventError,
    SequencingViolation,
    TransportError,
)

__all__ = [
    "Event",
    "EventType",
    "TERMINAL_EVENT_TYPES",
    "RunSnapshot",
    "Stage",
    "StageRecord",
    "PipelineRunOptions",
    "coerce_options",
    "text_run",
    "AnomalySink",
    "fold",
    "fold_all",
    "start_run",
    "canonicalize",
    "canonical_json_bytes",
    "canonical_json_str",
    "AssistError",
    "AuthenticationError",
    "InvalidOptionsError",
    "MalformedEventError",
    "SequencingViolation",
    "TransportError",
]
