"""
Log setup for assist-run commands and the run orchestrator.

Records go to stderr so that `--json` output on stdout stays parseable.
Every record carries a trace_id; the orchestrator uses the pipeline id,
so all lines of one run can be grepped together.

ASSIST_LOG_LEVEL picks the threshold (a level name or number, INFO when
unset or unknown). ASSIST_LOG_FORMAT picks "json" (python-json-logger,
the default) or "text".

    setup_logging(level="debug", log_format="text")
    log = get_logger(__name__, trace_id="01HPIPELINE")
    log.warning("Unsubscribe failed")
"""

import logging
import os
import sys
from typing import Optional

from pythonjsonlogger import jsonlogger

JSON_FIELDS = "%(asctime)s %(name)s %(levelname)s %(message)s %(trace_id)s"
TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s [%(trace_id)s] %(message)s"


def resolve_level(value: Optional[str]) -> int:
    """Numeric level for "warning", "WARNING" or "30"; INFO for anything else."""
    if not value:
        return logging.INFO
    value = value.strip()
    if value.isdigit():
        return int(value)
    level = logging.getLevelName(value.upper())
    return level if isinstance(level, int) else logging.INFO


def _formatter(log_format: str) -> logging.Formatter:
    if log_format == "text":
        return logging.Formatter(TEXT_FORMAT, datefmt="%H:%M:%S")
    return jsonlogger.JsonFormatter(
        JSON_FIELDS,
        rename_fields={"asctime": "timestamp", "name": "logger", "levelname": "level"},
    )


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Replace the root handlers with one stderr handler. Arguments override the environment."""
    threshold = resolve_level(level or os.getenv("ASSIST_LOG_LEVEL"))
    fmt = (log_format or os.getenv("ASSIST_LOG_FORMAT") or "json").lower()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(threshold)
    handler.addFilter(TraceIDFilter())
    handler.setFormatter(_formatter(fmt))

    root = logging.getLogger()
    root.setLevel(threshold)
    for old in root.handlers[:]:
        root.removeHandler(old)
    root.addHandler(handler)

    # frame-level chatter
    logging.getLogger("websockets").setLevel(logging.WARNING)


def get_logger(name: str, trace_id: Optional[str] = None) -> logging.LoggerAdapter:
    """Logger whose records carry trace_id ("N/A" when not given)."""
    return logging.LoggerAdapter(logging.getLogger(name), {"trace_id": trace_id or "N/A"})


class TraceIDFilter(logging.Filter):
    """Fills in trace_id for records logged without get_logger (library loggers)."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "trace_id"):
            record.trace_id = "N/A"  # type: ignore
        return True
