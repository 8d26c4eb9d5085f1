"""
Run orchestrator: drive one pipeline run over a transport.

Opens a single subscription, folds every pushed event into the run
snapshot, hands each snapshot to the caller and tears the subscription
down once the run reaches run-end or error.
"""

import asyncio
from typing import Any, Callable, Mapping, Optional, Union

from . import metrics
from .core.errors import AssistError, MalformedEventError, SequencingViolation, TransportError
from .core.events import TERMINAL_EVENT_TYPES, Event, EventType
from .core.options import PipelineRunOptions, coerce_options
from .core.reducer import fold
from .core.run import RunSnapshot
from .logging_config import get_logger
from .transport.base import Transport, Unsubscribe

RUN_REQUEST_TYPE = "assist_pipeline/run"

SnapshotCallback = Callable[[RunSnapshot], None]


class RunOrchestrator:
    """
    Tracks exactly one run.

    The snapshot slot is private; snapshots leave through on_snapshot and,
    once the run is over, through wait().
    Independent runs need independent instances.
    """

    def __init__(
        self,
        transport: Transport,
        on_snapshot: SnapshotCallback,
        options: Union[PipelineRunOptions, Mapping[str, Any]],
    ) -> None:
        self.transport = transport
        self.options = coerce_options(options)
        self._on_snapshot = on_snapshot
        self._snapshot: Optional[RunSnapshot] = None
        self._unsub: Optional[Unsubscribe] = None
        self._terminal = False
        self._teardown: Optional[asyncio.Future] = None
        self._result: Optional[asyncio.Future] = None
        self._failure: Optional[AssistError] = None
        self._remove_close_listener: Optional[Callable[[], None]] = None
        self.logger = get_logger(__name__, trace_id=self.options.pipeline)

    @property
    def finished(self) -> bool:
        return self._terminal

    def subscribe_payload(self) -> dict:
        return {**self.options.to_payload(), "type": RUN_REQUEST_TYPE}

    async def start(self) -> Unsubscribe:
        """
        Open the subscription.

        Returns:
            Coroutine function cancelling the run early

        Raises:
            TransportError: If the transport rejects the subscription
        """
        self._result = asyncio.get_running_loop().create_future()
        self._remove_close_listener = self.transport.add_close_listener(self._connection_lost)
        try:
            self._unsub = await self.transport.subscribe(self.subscribe_payload(), self._handle_event)
        except Exception:
            self._remove_close_listener()
            raise
        self.logger.info(
            "Run subscribed",
            extra={"start_stage": self.options.start_stage, "end_stage": self.options.end_stage},
        )
        if self._terminal:
            # Terminal event arrived before subscribe() resolved
            self._schedule_teardown()
        return self.cancel

    async def wait(self) -> Optional[RunSnapshot]:
        """
        Wait until the run reaches run-end or error, or is cancelled.

        Returns:
            The terminal snapshot; after cancel(), the last snapshot seen

        Raises:
            SequencingViolation: If the run ended without ever starting
            MalformedEventError: If the terminal event could not be parsed
            TransportError: If the connection was lost mid-run
        """
        if self._result is None:
            raise RuntimeError("run not started")
        snapshot = await asyncio.shield(self._result)
        if self._failure is not None:
            raise self._failure
        return snapshot

    async def cancel(self) -> None:
        """
        End the run now.

        Shares the single teardown with natural termination. Events already
        in flight may still be folded before the transport stops delivery.
        """
        if self._unsub is None:
            return
        if self._teardown is None:
            metrics.track_run_outcome("cancelled")
            self.logger.info("Run cancelled by caller")
        self._stop_waiting()
        self._schedule_teardown()
        await self._teardown

    def _schedule_teardown(self) -> None:
        if self._teardown is not None or self._unsub is None:
            return
        self._teardown = asyncio.ensure_future(self._unsub())
        self._teardown.add_done_callback(self._log_teardown_failure)

    def _log_teardown_failure(self, future: asyncio.Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            self.logger.warning("Unsubscribe failed: %s", exc)

    def _report(self, violation: SequencingViolation) -> None:
        metrics.track_sequencing_violation()
        self.logger.warning("Sequencing violation: %s", violation)

    def _finish(self, outcome: str, failure: Optional[AssistError] = None) -> None:
        self._terminal = True
        metrics.track_run_outcome(outcome)
        self.logger.info("Run finished", extra={"stage": outcome})
        self._stop_waiting(failure)
        self._schedule_teardown()

    def _stop_waiting(self, failure: Optional[AssistError] = None) -> None:
        if self._remove_close_listener is not None:
            self._remove_close_listener()
        if self._result is not None and not self._result.done():
            self._failure = failure
            self._result.set_result(self._snapshot)

    def _connection_lost(self) -> None:
        if self._terminal:
            return
        self.logger.warning("Connection lost before the run finished")
        self._terminal = True
        metrics.track_run_outcome("connection_lost")
        self._stop_waiting(TransportError("connection_lost", "connection closed before the run finished"))

    def _handle_event(self, raw: Any) -> None:
        if self._terminal:
            self.logger.debug("Dropping event after run finished: %r", raw)
            return

        try:
            event = Event.from_dict(raw)
        except MalformedEventError as e:
            self.logger.warning("Dropping malformed event: %s", e)
            kind = EventType.parse(raw.get("type")) if isinstance(raw, Mapping) else None
            if kind in TERMINAL_EVENT_TYPES:
                # Still the end of the run server-side
                self._finish("rejected", MalformedEventError(f"terminal {kind.value} event was malformed: {e}"))
            return

        metrics.track_event(event.type)
        self._snapshot = fold(self._snapshot, event, self.options, on_anomaly=self._report)

        if event.is_terminal:
            if self._snapshot is None:
                self._finish("rejected", SequencingViolation(f"{event.type} received with no active run", event))
            else:
                self._finish(self._snapshot.stage.value)

        if self._snapshot is not None:
            self._on_snapshot(self._snapshot)


async def run_assist_pipeline(
    transport: Transport,
    on_snapshot: SnapshotCallback,
    options: Union[PipelineRunOptions, Mapping[str, Any]],
) -> Unsubscribe:
    """
    Start a pipeline run and stream its snapshots to on_snapshot.

    Usage:
        cancel = await run_assist_pipeline(transport, print, text_run("turn on the lights"))
        ...
        await cancel()  # optional, the run tears itself down on run-end/error
    """
    orchestrator = RunOrchestrator(transport, on_snapshot, options)
    return await orchestrator.start()


async def wait_for_run(
    transport: Transport,
    options: Union[PipelineRunOptions, Mapping[str, Any]],
    on_snapshot: Optional[SnapshotCallback] = None,
    timeout: Optional[float] = None,
) -> RunSnapshot:
    """
    Run a pipeline to completion and return its terminal snapshot.

    Raises:
        asyncio.TimeoutError: If the run does not end within timeout
        SequencingViolation: If the run ended before run-start
        TransportError: If the subscription failed or the connection dropped
    """
    orchestrator = RunOrchestrator(transport, on_snapshot or (lambda snapshot: None), options)
    await orchestrator.start()
    try:
        return await asyncio.wait_for(orchestrator.wait(), timeout=timeout)
    except asyncio.TimeoutError:
        await orchestrator.cancel()
        raise
