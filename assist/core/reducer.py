"""
Reducer: pure fold of pipeline run events into run snapshots.

fold() must be:
- Pure (no side effects, no I/O, no logging)
- Deterministic (same input -> same output)
- Non-mutating (input snapshot is never changed, a new one is returned)

Anomalies are reported through an optional sink instead of being logged,
so callers choose what to do with them.
"""

from typing import Callable, Dict, Iterable, Optional

from .errors import SequencingViolation
from .events import Event, EventType
from .options import PipelineRunOptions
from .run import RunSnapshot, Stage, StageRecord

AnomalySink = Callable[[SequencingViolation], None]

# Handler signature: (current_snapshot, event, report) -> new_snapshot (events not yet appended)
Handler = Callable[[RunSnapshot, Event, AnomalySink], RunSnapshot]


def _ignore(violation: SequencingViolation) -> None:
    return None


def _stage_start(stage: Stage) -> Handler:
    def handler(run: RunSnapshot, event: Event, report: AnomalySink) -> RunSnapshot:
        return run.evolve(stage=stage, **{stage.value: StageRecord.started(event.data)})

    return handler


def _stage_end(stage: Stage) -> Handler:
    def handler(run: RunSnapshot, event: Event, report: AnomalySink) -> RunSnapshot:
        record = run.stage_record(stage.value)
        if record is None:
            report(SequencingViolation(f"{event.type} received before {stage.value}-start", event))
            return run.evolve()
        return run.evolve(**{stage.value: record.merged(event.data)})

    return handler


def _run_end(run: RunSnapshot, event: Event, report: AnomalySink) -> RunSnapshot:
    return run.evolve(stage=Stage.DONE)


def _error(run: RunSnapshot, event: Event, report: AnomalySink) -> RunSnapshot:
    return run.evolve(stage=Stage.ERROR, error=event.data)


def _passthrough(run: RunSnapshot, event: Event, report: AnomalySink) -> RunSnapshot:
    return run.evolve()


_HANDLERS: Dict[EventType, Handler] = {
    EventType.RUN_START: _passthrough,  # handled by fold() before dispatch
    EventType.STT_START: _stage_start(Stage.STT),
    EventType.STT_END: _stage_end(Stage.STT),
    EventType.INTENT_START: _stage_start(Stage.INTENT),
    EventType.INTENT_END: _stage_end(Stage.INTENT),
    EventType.TTS_START: _stage_start(Stage.TTS),
    EventType.TTS_END: _stage_end(Stage.TTS),
    EventType.RUN_END: _run_end,
    EventType.ERROR: _error,
}

_unhandled = set(EventType) - set(_HANDLERS)
if _unhandled:
    raise RuntimeError(f"No reducer handler for event types: {sorted(t.value for t in _unhandled)}")


def start_run(event: Event, options: Optional[PipelineRunOptions] = None) -> RunSnapshot:
    """Fresh snapshot for a run-start event."""
    return RunSnapshot(
        stage=Stage.READY,
        run=event.data,
        events=(event,),
        init_options=options,
    )


def fold(
    current: Optional[RunSnapshot],
    event: Event,
    options: Optional[PipelineRunOptions] = None,
    on_anomaly: Optional[AnomalySink] = None,
) -> Optional[RunSnapshot]:
    """
    Apply one event to the current snapshot.

    Args:
        current: Snapshot so far, or None before run-start
        event: Next event in arrival order
        options: Launch options, stored on the snapshot at run-start
        on_anomaly: Receives SequencingViolation for out-of-order events

    Returns:
        New snapshot, or None if the event arrived without an active run
    """
    report = on_anomaly or _ignore
    kind = event.kind

    if kind is EventType.RUN_START:
        if current is not None and not current.is_terminal:
            report(SequencingViolation("run-start received during an active run", event))
        return start_run(event, options)

    if current is None:
        report(SequencingViolation(f"{event.type} received with no active run", event))
        return None

    handler = _HANDLERS[kind] if kind is not None else _passthrough
    updated = handler(current, event, report)
    return updated.evolve(events=updated.events + (event,))


def fold_all(
    events: Iterable[Event],
    options: Optional[PipelineRunOptions] = None,
    on_anomaly: Optional[AnomalySink] = None,
) -> Optional[RunSnapshot]:
    """Fold an iterable of events starting from no snapshot."""
    run: Optional[RunSnapshot] = None
    for event in events:
        run = fold(run, event, options, on_anomaly)
    return run
