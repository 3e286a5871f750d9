"""
pulse.model
AUTHOR: carter-vin

Heartbeat payload + deterministic serialization primitives.

Wire body (UTF-8 JSON):
{
  "timestamp": "<ISO 8601 UTC, second precision>",
  "session_key": "<opaque>",
  "language_name": "<canonical tag or txt>"
}
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional


@dataclass(frozen=True)
class HeartbeatPayload:
    """
    One heartbeat; built fresh per emission, never retained
    """

    timestamp: str
    session_key: str
    language_name: str

    def to_dict(self) -> dict[str, Any]:
        # Explicit key mapping for stability
        return {
            "timestamp": self.timestamp,
            "session_key": self.session_key,
            "language_name": self.language_name,
        }


def utc_iso_seconds(epoch_s: Optional[float] = None) -> str:
    """
    ISO 8601 (UTC) truncated to whole seconds
    """
    if epoch_s is None:
        moment = datetime.now(timezone.utc)
    else:
        moment = datetime.fromtimestamp(epoch_s, timezone.utc)
    return moment.isoformat(timespec="seconds")


def validate_payload(payload: HeartbeatPayload) -> None:
    """
    Raises ValueError on invalid
    """
    if not payload.timestamp:
        raise ValueError("timestamp is empty")
    if not payload.session_key:
        raise ValueError("session_key is empty")
    if not payload.language_name:
        raise ValueError("language_name is empty")


def build_payload(session_key: str, language_name: str, *, now: Optional[float] = None) -> HeartbeatPayload:
    payload = HeartbeatPayload(
        timestamp=utc_iso_seconds(now),
        session_key=session_key,
        language_name=language_name,
    )

    # Never serialize invalid objects
    validate_payload(payload)
    return payload


def payload_to_json(payload: HeartbeatPayload) -> str:
    """
    Serialize a HeartbeatPayload

    - sort_keys=True ensures stable key order
    - separators remove whitespace to avoid formatting drift
    - ensure_ascii=False keeps UTF-8 readable
    """
    return json.dumps(
        payload.to_dict(),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
