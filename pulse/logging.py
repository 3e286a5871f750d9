"""
pulse.logging
AUTHOR: carter-vin

Process-wide debug log for heartbeat diagnostics

Contract:
- Append-only, in-memory entries (cleared only by clear())
- Each entry mirrored as one JSON object per line to the configured sink
- Stable event vocabulary (allowlist)
- UTC timestamps only
"""

from __future__ import annotations

import json
import sys
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

# Event types
VALID_EVENT_TYPES = {
    "agent_start",
    "agent_shutdown",
    "session_missing",
    "language_classified",
    "heartbeat_dispatched",
    "heartbeat_sent",
    "heartbeat_failed",
    "notify_failed",
}

# Sink identifiers that are not file paths
STREAM_SINKS = {"stdout", "stderr", "none"}


def _truncate_message(value: str, *, limit: int = 200) -> str:
    """
    Cap message length to keep events compact
    """
    if len(value) <= limit:
        return value
    return value[:limit] + f"...[truncated {len(value) - limit} chars]"


# Time: current in UTC ISO 8601
def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class LogEntry:
    """
    Single debug log record
    - timestamp: UTC ISO 8601
    - message: human readable line ("event_type key=value ...")
    - fields: structured copy of the event fields
    """

    timestamp: str
    event_type: str
    message: str
    fields: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type,
            "utc_now": self.timestamp,
            **self.fields,
        }


def format_message(event_type: str, fields: dict[str, Any]) -> str:
    parts = [event_type]
    for key in sorted(fields):
        parts.append(f"{key}={fields[key]}")
    return " ".join(parts)


class DebugLog:
    """
    Append-only event log shared by every pulse component.

    sink:
    - "stderr" / "stdout": resolved at write time (plays well with capture)
    - "none": keep entries in memory only
    - anything else: treated as a file path, appended as JSONL

    In-memory entries are authoritative. A sink that fails to write is
    reported once on stderr and then marked broken; emit() never raises
    OSError.
    """

    def __init__(self, sink: str = "stderr") -> None:
        self.sink = sink
        self._entries: list[LogEntry] = []
        self._lock = threading.Lock()
        self.sink_error: Optional[str] = None

    @property
    def entries(self) -> list[LogEntry]:
        with self._lock:
            return list(self._entries)

    def of_type(self, event_type: str) -> list[LogEntry]:
        return [entry for entry in self.entries if entry.event_type == event_type]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def emit(self, event_type: str, **fields: Any) -> LogEntry:
        """
        Append one event

        Rules:
        - event_type in VALID_EVENT_TYPES
        - event_type and timestamp always present
        - sort_keys + compact separators for format
        """
        if event_type not in VALID_EVENT_TYPES:
            raise ValueError(f"invalid event_type: {event_type}")

        if "message" in fields and isinstance(fields["message"], str):
            # Avoid emitting long strings in event fields
            fields["message"] = _truncate_message(fields["message"])

        entry = LogEntry(
            timestamp=utc_now_iso(),
            event_type=event_type,
            message=format_message(event_type, fields),
            fields=dict(fields),
        )

        line = json.dumps(
            entry.to_dict(),
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            default=str,
        )

        with self._lock:
            self._entries.append(entry)
            if self.sink_error is None:
                try:
                    self._write(line)
                except OSError as e:
                    self._mark_broken(e)

        return entry

    def _write(self, line: str) -> None:
        if self.sink == "none":
            return
        if self.sink == "stdout":
            print(line, file=sys.stdout)
            return
        if self.sink == "stderr":
            print(line, file=sys.stderr)
            return

        path = Path(self.sink)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open(mode="a", encoding="utf-8", newline="\n") as f:
            f.write(line)
            f.write("\n")
            f.flush()

    def _mark_broken(self, error: OSError) -> None:
        self.sink_error = f"{type(error).__name__}: {error}"
        try:
            print(f"pulse: debug log sink {self.sink!r} disabled ({self.sink_error})", file=sys.stderr)
        except (OSError, ValueError):
            pass


_default_log = DebugLog()


def get_debug_log() -> DebugLog:
    return _default_log


def set_debug_log(log: DebugLog) -> DebugLog:
    """
    Swap the process-wide log; returns the previous one
    """
    global _default_log
    previous = _default_log
    _default_log = log
    return previous


def emit_event(event_type: str, **fields: Any) -> LogEntry:
    """
    Emit to the process-wide debug log
    """
    return _default_log.emit(event_type, **fields)
