"""
pulse.deliver

AUTHOR: carter-vin

OUTPUT:
- one HTTP POST per heartbeat
- JSON body, Content-Type: application/json

Design goals:
- Never block the caller; the POST runs as a task on the running event loop
- One attempt only: no retry, no backoff, no queue
- Failures captured as data (DeliveryOutcome) and logged, never raised
- Transport handle scoped to the request (released on every path)
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, replace
from typing import Callable, Optional

import httpx

from pulse.logging import DebugLog, get_debug_log
from pulse.model import HeartbeatPayload, payload_to_json

DEFAULT_ENDPOINT = "http://localhost:8080/heartbeat"
REQUEST_HEADERS = {"Content-Type": "application/json"}


@dataclass(frozen=True)
class DeliveryOutcome:
    """
    Normalized delivery result
    - ok: false=failure, details in error fields
    - status_code: None when no response arrived
    """

    ok: bool
    status_code: Optional[int] = None
    error_type: Optional[str] = None
    error_message: Optional[str] = None
    elapsed_ms: int = 0


class DeliveryClient:
    """
    Fire-and-forget heartbeat sender.

    notify:
    - transient user-visible message on failure (host status line, stderr...)
    transport:
    - optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        *,
        log: Optional[DebugLog] = None,
        notify: Optional[Callable[[str], None]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.endpoint = endpoint
        self.notify = notify
        self._log = log
        self._transport = transport
        self._pending: set[asyncio.Task] = set()

    @property
    def log(self) -> DebugLog:
        return self._log if self._log is not None else get_debug_log()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def send(self, payload: HeartbeatPayload) -> asyncio.Task:
        """
        Schedule the POST and return immediately

        Raises RuntimeError when called outside a running event loop
        """
        body = payload_to_json(payload).encode("utf-8")
        loop = asyncio.get_running_loop()

        task = loop.create_task(self._post(body))
        # Strong reference until completion; the loop only keeps weak ones
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _post(self, body: bytes) -> DeliveryOutcome:
        start = time.monotonic()

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(self.endpoint, content=body, headers=REQUEST_HEADERS)

            if response.is_success:
                outcome = DeliveryOutcome(ok=True, status_code=response.status_code)
            else:
                outcome = DeliveryOutcome(
                    ok=False,
                    status_code=response.status_code,
                    error_type="HTTPStatusError",
                    error_message=f"collector answered {response.status_code} {response.reason_phrase}",
                )

        except (httpx.HTTPError, httpx.InvalidURL) as e:
            outcome = DeliveryOutcome(
                ok=False,
                error_type=type(e).__name__,
                error_message=str(e) or repr(e),
            )

        outcome = replace(outcome, elapsed_ms=int((time.monotonic() - start) * 1000))
        self._complete(outcome)
        return outcome

    def _complete(self, outcome: DeliveryOutcome) -> None:
        """
        Completion handler: one log entry per outcome
        """
        if outcome.ok:
            self.log.emit(
                "heartbeat_sent",
                endpoint=self.endpoint,
                status_code=outcome.status_code,
                elapsed_ms=outcome.elapsed_ms,
            )
            return

        self.log.emit(
            "heartbeat_failed",
            endpoint=self.endpoint,
            status_code=outcome.status_code,
            error_type=outcome.error_type,
            message=outcome.error_message,
            elapsed_ms=outcome.elapsed_ms,
        )
        if self.notify is None:
            return

        try:
            self.notify(f"pulse: heartbeat failed ({outcome.error_message})")
        except Exception as e:
            # Host notification is best effort; the failure is already logged
            self.log.emit(
                "notify_failed",
                error_type=type(e).__name__,
                message=str(e),
            )

    async def aclose(self) -> None:
        """
        Wait for in-flight sends to settle
        """
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
