"""
Event sinks for the table's structured event stream.

The engine emits one record per discrete event (blind posted, cards dealt,
action applied, street advanced, pot settled). A sink is anything with
``log(event_type, payload)``; persistence and presentation layers plug in
here.
"""

from __future__ import annotations

import json
import pathlib
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol


class EventSink(Protocol):
    def log(self, event_type: str, payload: Optional[Dict[str, Any]] = None) -> None:
        ...


def _record(event_type: str, payload: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(),
        "type": event_type,
        "payload": payload or {},
    }


class NDJSONLogger:
    """
    Writes JSON records to a file, one per line.

    The writer always injects an ISO timestamp and keeps field ordering stable
    by serialising with sort_keys=True.
    """

    def __init__(self, path: pathlib.Path, mode: str = "w") -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self._path = path
        self._file = path.open(mode, encoding="utf-8")

    @property
    def path(self) -> pathlib.Path:
        return self._path

    def log(self, event_type: str, payload: Optional[Dict[str, Any]] = None) -> None:
        self._file.write(json.dumps(_record(event_type, payload), sort_keys=True) + "\n")
        self._file.flush()

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

    def __enter__(self) -> "NDJSONLogger":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class EventLog:
    """Keeps records in memory; handy for tests and for fanning out to several sinks."""

    def __init__(self, *forward: EventSink) -> None:
        self.records: List[Dict[str, Any]] = []
        self._forward = forward

    def log(self, event_type: str, payload: Optional[Dict[str, Any]] = None) -> None:
        self.records.append(_record(event_type, payload))
        for sink in self._forward:
            sink.log(event_type, payload)

    def of_type(self, event_type: str) -> List[Dict[str, Any]]:
        return [record for record in self.records if record["type"] == event_type]
