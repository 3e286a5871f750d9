"""
pulse.gate
AUTHOR: carter-vin

Heartbeat rate limiting: at most one attempt per interval

Gate semantics:
- allow() is pure; it never touches state
- the caller records last_sent_at = now BEFORE delivery, so a slow or failing
  send cannot open the gate again inside the same interval
- no rollback on delivery failure
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

DEFAULT_INTERVAL_S = 123


@dataclass
class HeartbeatState:
    """
    last_sent_at:
    - epoch seconds of the last permitted attempt (None = never)
    interval_s:
    - minimum gap between attempts (seconds)
    """

    last_sent_at: Optional[float] = None
    interval_s: int = DEFAULT_INTERVAL_S


def allow(now: float, state: HeartbeatState) -> bool:
    if state.last_sent_at is None:
        return True
    return now - state.last_sent_at > state.interval_s
