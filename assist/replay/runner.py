"""
Replay runner: rebuild a run snapshot from recorded events.

Replay is pure: folds each event in recorded order.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from ..core.errors import SequencingViolation
from ..core.events import Event
from ..core.options import PipelineRunOptions
from ..core.reducer import fold
from ..core.run import RunSnapshot


@dataclass(frozen=True)
class ReplayResult:
    """
    Result of replay operation.

    Fields:
        snapshot: Final snapshot (None if no run-start was seen)
        applied: Number of events folded
        anomalies: Sequencing violations reported while folding
    """
    snapshot: Optional[RunSnapshot]
    applied: int
    anomalies: Tuple[SequencingViolation, ...] = ()


def replay(
    events: Iterable[Event],
    options: Optional[PipelineRunOptions] = None,
    to_seq: Optional[int] = None,
) -> ReplayResult:
    """
    Fold recorded events into a snapshot.

    Args:
        events: Events in recorded order
        options: Launch options to attach at run-start
        to_seq: Stop after this zero-based index (inclusive, None = all)

    Returns:
        ReplayResult with final snapshot, count and anomalies
    """
    run: Optional[RunSnapshot] = None
    anomalies: List[SequencingViolation] = []
    count = 0

    for seq, ev in enumerate(events):
        if to_seq is not None and seq > to_seq:
            break
        run = fold(run, ev, options, on_anomaly=anomalies.append)
        count += 1

    return ReplayResult(snapshot=run, applied=count, anomalies=tuple(anomalies))
