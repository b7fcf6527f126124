# rsaforge/telemetry.py
# Structured lifecycle events (start, progress, success, failure, summary,
# warning). Generation code only calls sink.emit(); what a sink does with the
# event never changes a generation outcome.

from __future__ import annotations
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, TextIO, Tuple

QUIET_EVENTS = frozenset({"progress"})


class EventSink(Protocol):
    def emit(self, event: str, **fields: Any) -> None:
        ...


def now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def _plain(value: Any) -> Any:
    # big ints go out as strings so JSON consumers keep full precision
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, int):
        return str(value) if value.bit_length() > 53 else value
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


class NullSink:
    def emit(self, event: str, **fields: Any) -> None:
        return None


class PrintSink:
    """One `ts EVENT key=value ...` line per event, flushed immediately."""

    def __init__(self, verbose: bool = False, stream: Optional[TextIO] = None):
        self.verbose = verbose
        self.stream = stream

    def emit(self, event: str, **fields: Any) -> None:
        if event in QUIET_EVENTS and not self.verbose:
            return
        parts = [f"{k}={_plain(v)}" for k, v in fields.items()]
        print(f"{now()} {event.upper()} " + " ".join(parts),
              file=self.stream or sys.stderr, flush=True)


class JsonlSink:
    """Appends one JSON object per event to a log file."""

    def __init__(self, path: str):
        self.path = Path(path)
        if self.path.parent:
            self.path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, event: str, **fields: Any) -> None:
        row = {"ts": now(), "event": event}
        row.update({k: _plain(v) for k, v in fields.items()})
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(row, separators=(",", ":")) + "\n")


class MemorySink:
    def __init__(self):
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def emit(self, event: str, **fields: Any) -> None:
        self.events.append((event, dict(fields)))

    def names(self) -> List[str]:
        return [e for e, _ in self.events]


class FanoutSink:
    def __init__(self, *sinks: EventSink):
        self.sinks = sinks

    def emit(self, event: str, **fields: Any) -> None:
        for s in self.sinks:
            s.emit(event, **fields)


NULL_SINK = NullSink()
