"""
Load recorded pipeline run events from disk.

Accepted layouts:
- JSON array of events
- JSON object with an "events" key (debug-log dump)
- JSONL, one event per line
"""

import json
from pathlib import Path
from typing import Any, List, Union

from ..core.errors import MalformedEventError
from ..core.events import Event


def _parse_document(text: str) -> List[Any]:
    try:
        doc = json.loads(text)
    except json.JSONDecodeError:
        records = []
        for lineno, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError as e:
                raise MalformedEventError(f"line {lineno}: invalid JSON ({e.msg})") from e
        return records

    if isinstance(doc, list):
        return doc
    if isinstance(doc, dict) and isinstance(doc.get("events"), list):
        return doc["events"]
    # A single JSONL line parses as one object
    return [doc]


def load_events(path: Union[str, Path]) -> List[Event]:
    """
    Read events from path.

    Raises:
        FileNotFoundError: If path does not exist
        MalformedEventError: If the file or an event in it is malformed
    """
    text = Path(path).read_text(encoding="utf-8")
    return [Event.from_dict(rec) for rec in _parse_document(text)]
