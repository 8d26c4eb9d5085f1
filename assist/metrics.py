"""
Prometheus metrics for pipeline runs.

Environment Variables:
    ASSIST_METRICS_ENABLED / ASSIST_METRICS_PORT (see assist.config)

Usage:
    from assist.metrics import start_metrics_server, track_event

    start_metrics_server(enabled=True, port=9108)
    track_event("stt-start")
"""

import logging
import threading

from prometheus_client import Counter, start_http_server

logger = logging.getLogger(__name__)

# Created by init_metrics(); tracking calls are no-ops until then
EVENTS_TOTAL: "Counter" = None  # type: ignore
RUNS_TOTAL: "Counter" = None  # type: ignore
SEQUENCING_VIOLATIONS: "Counter" = None  # type: ignore

_metrics_initialized = False
_metrics_lock = threading.Lock()


def init_metrics() -> None:
    """
    Initialize Prometheus metrics (call once at startup).

    Thread-safe via module-level lock.
    """
    global EVENTS_TOTAL, RUNS_TOTAL, SEQUENCING_VIOLATIONS
    global _metrics_initialized

    with _metrics_lock:
        if _metrics_initialized:
            return

        EVENTS_TOTAL = Counter(
            "assist_events_total",
            "Total number of pipeline run events received",
            labelnames=["event_type"],
        )

        # outcome: done, error, cancelled
        RUNS_TOTAL = Counter(
            "assist_runs_total",
            "Total number of pipeline runs by outcome",
            labelnames=["outcome"],
        )

        SEQUENCING_VIOLATIONS = Counter(
            "assist_sequencing_violations_total",
            "Total number of events received out of run order",
        )

        _metrics_initialized = True
        logger.info("Prometheus metrics initialized")


def start_metrics_server(enabled: bool, port: int) -> None:
    """
    Start Prometheus metrics HTTP server in background thread.

    Args:
        enabled: Whether to start the server (ASSIST_METRICS_ENABLED)
        port: HTTP port for /metrics (ASSIST_METRICS_PORT)
    """
    if not enabled:
        logger.info("Metrics server disabled (ASSIST_METRICS_ENABLED=0)")
        return

    init_metrics()

    try:
        start_http_server(port, addr="0.0.0.0")
        logger.info(f"Metrics server started on http://0.0.0.0:{port}/metrics")
    except OSError as e:
        logger.error(f"Failed to start metrics server: {e}")


def track_event(event_type: str) -> None:
    if EVENTS_TOTAL is not None:
        EVENTS_TOTAL.labels(event_type=event_type).inc()


def track_run_outcome(outcome: str) -> None:
    if RUNS_TOTAL is not None:
        RUNS_TOTAL.labels(outcome=outcome).inc()


def track_sequencing_violation() -> None:
    if SEQUENCING_VIOLATIONS is not None:
        SEQUENCING_VIOLATIONS.inc()
