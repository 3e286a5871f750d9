"""
pulse.controller
AUTHOR: carter-vin

Heartbeat orchestration for an editor host

Flow per trigger (save or idle check):
session set? -> path present? -> gate allows? -> record attempt -> classify
-> build payload -> hand off to DeliveryClient (non-blocking)

Failure semantics:
- nothing raised inside a trigger reaches the host
- every failure degrades to "no heartbeat this interval"
"""

from __future__ import annotations

import asyncio
import threading
import time
from typing import Callable, Optional, Protocol

from pulse.config import AGENT_VERSION, PulseConfig
from pulse.deliver import DeliveryClient
from pulse.gate import HeartbeatState, allow
from pulse.languages import LanguageClassifier
from pulse.logging import DebugLog, get_debug_log
from pulse.model import build_payload


class TriggerPort(Protocol):
    """
    What the host editor provides to the controller
    """

    def register_save(self, callback: Callable[[str], None]) -> None:
        ...

    def every(self, interval_s: float, callback: Callable[[], None]) -> Callable[[], None]:
        """Arm a recurring timer; returns a cancel function"""
        ...

    def idle_seconds(self) -> float:
        ...

    def active_file(self) -> Optional[str]:
        ...

    def notify(self, message: str) -> None:
        ...


class HeartbeatController:
    """
    Owns the session credential and heartbeat state for one host.

    clock:
    - epoch seconds source, injectable for deterministic tests
    """

    def __init__(
        self,
        config: Optional[PulseConfig] = None,
        *,
        delivery: Optional[DeliveryClient] = None,
        classifier: Optional[LanguageClassifier] = None,
        log: Optional[DebugLog] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config if config is not None else PulseConfig()
        self._log = log
        self._clock = clock
        self.delivery = delivery if delivery is not None else DeliveryClient(self.config.endpoint, log=log)
        self.classifier = classifier if classifier is not None else LanguageClassifier(log=log)

        self._state = HeartbeatState(interval_s=self.config.interval_s)
        self._session: Optional[str] = None
        self._initialized = False
        self._lock = threading.Lock()
        self._port: Optional[TriggerPort] = None
        self._cancel_timer: Optional[Callable[[], None]] = None

    @property
    def log(self) -> DebugLog:
        return self._log if self._log is not None else get_debug_log()

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def has_session(self) -> bool:
        return bool(self._session)

    @property
    def last_sent_at(self) -> Optional[float]:
        return self._state.last_sent_at

    @property
    def interval_s(self) -> int:
        return self._state.interval_s

    # -----------------------------
    # LIFECYCLE
    # -----------------------------
    def init(self, session_key: Optional[str], port: Optional[TriggerPort] = None) -> None:
        """
        Set the session (once) and wire host triggers

        Missing session_key is not an error: triggers are still wired but
        every heartbeat is suppressed.
        """
        if self._initialized:
            raise RuntimeError("controller already initialized")

        self._initialized = True
        self._session = session_key or None

        self.log.emit(
            "agent_start",
            agent_version=AGENT_VERSION,
            endpoint=self.delivery.endpoint,
            interval_s=self.interval_s,
            session_set=self.has_session,
        )
        if not self.has_session:
            self.log.emit("session_missing", agent_version=AGENT_VERSION)

        if port is None:
            return

        self._port = port
        if self.delivery.notify is None:
            self.delivery.notify = port.notify

        port.register_save(self.on_save)
        self._cancel_timer = port.every(self.interval_s, self._on_timer)

    def shutdown(self) -> None:
        if self._cancel_timer is not None:
            self._cancel_timer()
            self._cancel_timer = None
            self.log.emit("agent_shutdown", agent_version=AGENT_VERSION)

    async def aclose(self) -> None:
        """
        Shutdown and wait for in-flight deliveries
        """
        self.shutdown()
        await self.delivery.aclose()

    # -----------------------------
    # TRIGGERS
    # -----------------------------
    def on_save(self, path: Optional[str]) -> Optional[asyncio.Task]:
        return self._maybe_emit(path, self._clock())

    def on_idle_check(self, idle_s: float, path: Optional[str]) -> Optional[asyncio.Task]:
        if idle_s <= self.interval_s:
            return None
        return self._maybe_emit(path, self._clock())

    def _on_timer(self) -> None:
        port = self._port
        if port is None:
            return
        self.on_idle_check(port.idle_seconds(), port.active_file())

    def _maybe_emit(self, path: Optional[str], now: float) -> Optional[asyncio.Task]:
        if not self._session:
            return None
        if not path:
            return None

        # Read-decide-update must not interleave across host threads
        with self._lock:
            if not allow(now, self._state):
                return None
            self._state.last_sent_at = now

        try:
            language = self.classifier.classify(path)
            payload = build_payload(self._session, language, now=now)

            self.log.emit("heartbeat_dispatched", path=path, language=language)
            return self.delivery.send(payload)

        except Exception as e:
            # Host stability first: record and drop this heartbeat
            self.log.emit(
                "heartbeat_failed",
                path=path,
                error_type=type(e).__name__,
                message=str(e),
            )
            return None
