"""
pulse.config
AUTHOR: carter-vin

Runtime configuration (defaults, overridable by environment then CLI)

Environment:
- PULSE_ENDPOINT   collector URL
- PULSE_INTERVAL_S heartbeat interval in seconds (>= 1)
- PULSE_DEBUG_LOG  "stderr" | "stdout" | "none" | <file path>
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from pulse.deliver import DEFAULT_ENDPOINT
from pulse.gate import DEFAULT_INTERVAL_S

AGENT_VERSION = "0.1.0"
DEFAULT_DEBUG_LOG = "stderr"


@dataclass(frozen=True)
class PulseConfig:
    endpoint: str = DEFAULT_ENDPOINT
    interval_s: int = DEFAULT_INTERVAL_S
    debug_log: str = DEFAULT_DEBUG_LOG

    @staticmethod
    def from_env(env: Optional[Mapping[str, str]] = None) -> "PulseConfig":
        """
        Build config from environment

        Defensive parsing; bad values fall back to defaults rather than
        keeping the client from loading
        """
        if env is None:
            env = os.environ

        endpoint = env.get("PULSE_ENDPOINT", "").strip() or DEFAULT_ENDPOINT
        debug_log = env.get("PULSE_DEBUG_LOG", "").strip() or DEFAULT_DEBUG_LOG

        try:
            interval_s = int(env.get("PULSE_INTERVAL_S", DEFAULT_INTERVAL_S))
        except ValueError:
            interval_s = DEFAULT_INTERVAL_S

        if interval_s < 1:
            interval_s = DEFAULT_INTERVAL_S

        return PulseConfig(endpoint=endpoint, interval_s=interval_s, debug_log=debug_log)
