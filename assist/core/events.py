"""
Event model for pipeline runs.

Events are immutable records pushed by the server, one per state change
of a run. The wire shape is {"type": <kind>, "timestamp": <str>, "data": {...}}.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from .errors import MalformedEventError


class EventType(str, Enum):
    """Closed set of event kinds emitted during a pipeline run."""

    RUN_START = "run-start"
    RUN_END = "run-end"
    ERROR = "error"
    STT_START = "stt-start"
    STT_END = "stt-end"
    INTENT_START = "intent-start"
    INTENT_END = "intent-end"
    TTS_START = "tts-start"
    TTS_END = "tts-end"

    @classmethod
    def parse(cls, value: str) -> Optional["EventType"]:
        """Return the member for value, or None for kinds this version does not know."""
        try:
            return cls(value)
        except ValueError:
            return None


TERMINAL_EVENT_TYPES = frozenset({EventType.RUN_END, EventType.ERROR})


def read_only(data: Mapping[str, Any]) -> Mapping[str, Any]:
    """Read-only view of a payload. Copies once; existing views are reused."""
    if isinstance(data, MappingProxyType):
        return data
    return MappingProxyType(dict(data))


@dataclass(frozen=True)
class Event:
    """
    Immutable pipeline run event.

    Fields:
        type: Kind string (e.g., "run-start", "stt-end")
        timestamp: Server timestamp, carried as an opaque string
        data: Kind-specific payload, read-only (top level)
    """
    type: str
    timestamp: str = ""
    data: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", read_only(self.data))

    @property
    def kind(self) -> Optional[EventType]:
        return EventType.parse(self.type)

    @property
    def is_terminal(self) -> bool:
        return self.kind in TERMINAL_EVENT_TYPES

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "timestamp": self.timestamp, "data": dict(self.data)}

    @staticmethod
    def from_dict(raw: Mapping[str, Any]) -> "Event":
        """
        Build an Event from its wire form.

        Only the structural shape is checked; field values inside data
        are passed through untouched.

        Raises:
            MalformedEventError: If raw is not a mapping, type is missing or
                not a string, data is not a mapping, or timestamp is not a string
        """
        if not isinstance(raw, Mapping):
            raise MalformedEventError(f"Event must be an object, got {type(raw).__name__}")

        kind = raw.get("type")
        if not isinstance(kind, str) or not kind:
            raise MalformedEventError(f"Event type must be a non-empty string, got {kind!r}")

        data = raw.get("data")
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise MalformedEventError(f"Event data for {kind} must be an object")

        timestamp = raw.get("timestamp")
        if timestamp is None:
            timestamp = ""
        if not isinstance(timestamp, str):
            raise MalformedEventError(f"Event timestamp for {kind} must be a string")

        return Event(type=kind, timestamp=timestamp, data=data)
