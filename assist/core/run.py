"""
Run snapshot model.

A RunSnapshot is the folded state of one pipeline run. It is immutable:
the reducer builds a new snapshot for every event, so a reference held by
a caller never changes underneath it.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from .events import Event, read_only
from .options import PipelineRunOptions


class Stage(str, Enum):
    READY = "ready"
    STT = "stt"
    INTENT = "intent"
    TTS = "tts"
    DONE = "done"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (Stage.DONE, Stage.ERROR)


@dataclass(frozen=True)
class StageRecord(Mapping[str, Any]):
    """
    Start payload of a stage, merged with its end payload once it arrives.

    Reads like a dict: record["engine"], record.get("stt_output").
    """
    fields: Mapping[str, Any] = field(default_factory=dict)
    done: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", read_only(self.fields))

    @staticmethod
    def started(data: Mapping[str, Any]) -> "StageRecord":
        return StageRecord(fields=data, done=False)

    def merged(self, data: Mapping[str, Any]) -> "StageRecord":
        """Return a finished record with end fields folded over the start fields."""
        fields = dict(self.fields)
        fields.update(data)
        return StageRecord(fields=fields, done=True)

    def __getitem__(self, key: str) -> Any:
        if key == "done":
            return self.done
        return self.fields[key]

    def __iter__(self) -> Iterator[str]:
        yield from self.fields
        if "done" not in self.fields:
            yield "done"

    def __len__(self) -> int:
        return len(self.fields) + (0 if "done" in self.fields else 1)

    def to_dict(self) -> Dict[str, Any]:
        return {**self.fields, "done": self.done}


@dataclass(frozen=True)
class RunSnapshot:
    """
    Folded view of a pipeline run.

    Fields:
        stage: Coarse run state
        run: run-start payload (pipeline, language, runner_data)
        events: Every event folded so far, in arrival order
        init_options: Options the run was launched with
        error: error payload, only when stage is ERROR
        stt / intent / tts: Per-stage records, None until the stage starts
    """
    stage: Stage
    run: Mapping[str, Any]
    events: Tuple[Event, ...] = ()
    init_options: Optional[PipelineRunOptions] = None
    error: Optional[Mapping[str, Any]] = None
    stt: Optional[StageRecord] = None
    intent: Optional[StageRecord] = None
    tts: Optional[StageRecord] = None

    def __post_init__(self) -> None:
        # Payloads are shared by every later snapshot of the run
        object.__setattr__(self, "run", read_only(self.run))
        if self.error is not None:
            object.__setattr__(self, "error", read_only(self.error))

    @property
    def is_terminal(self) -> bool:
        return self.stage.is_terminal

    def stage_record(self, name: str) -> Optional[StageRecord]:
        return getattr(self, name)

    def evolve(self, **changes: Any) -> "RunSnapshot":
        """Copy with changes applied; unchanged fields are shared, not copied."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "init_options": self.init_options.to_payload() if self.init_options else None,
            "events": [e.to_dict() for e in self.events],
            "stage": self.stage.value,
            "run": dict(self.run),
        }
        if self.error is not None:
            out["error"] = dict(self.error)
        for name in ("stt", "intent", "tts"):
            record = self.stage_record(name)
            if record is not None:
                out[name] = record.to_dict()
        return out
