"""
Contract tests for heartbeat delivery

One POST per send, outcome captured as data, exactly one log entry per
outcome, no retries.
"""

import asyncio
import json

import httpx

from pulse.deliver import DeliveryClient
from pulse.model import build_payload

ENDPOINT = "http://collector.test/heartbeat"


def _deliver(client: DeliveryClient, payload):
    async def _run():
        task = client.send(payload)
        # send() returns before the request completes
        assert not task.done()
        return await task

    return asyncio.run(_run())


def test_success_posts_json_body(debug_log) -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201)

    client = DeliveryClient(ENDPOINT, log=debug_log, transport=httpx.MockTransport(handler))
    outcome = _deliver(client, build_payload("abc", "rust", now=0))

    assert outcome.ok
    assert outcome.status_code == 201

    assert len(seen) == 1
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == ENDPOINT
    assert request.headers["content-type"] == "application/json"
    assert json.loads(request.content.decode("utf-8")) == {
        "timestamp": "1970-01-01T00:00:00+00:00",
        "session_key": "abc",
        "language_name": "rust",
    }

    assert len(debug_log.of_type("heartbeat_sent")) == 1
    assert debug_log.of_type("heartbeat_failed") == []
    assert client.pending == 0


def test_non_success_status_is_one_failure_and_notifies(debug_log) -> None:
    calls = []
    notices = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(503)

    client = DeliveryClient(
        ENDPOINT,
        log=debug_log,
        notify=notices.append,
        transport=httpx.MockTransport(handler),
    )
    outcome = _deliver(client, build_payload("abc", "c", now=0))

    assert not outcome.ok
    assert outcome.status_code == 503
    assert len(calls) == 1

    failures = debug_log.of_type("heartbeat_failed")
    assert len(failures) == 1
    assert failures[0].fields["status_code"] == 503
    assert debug_log.of_type("heartbeat_sent") == []

    assert len(notices) == 1
    assert "heartbeat failed" in notices[0]


def test_connection_error_is_captured(debug_log) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = DeliveryClient(ENDPOINT, log=debug_log, transport=httpx.MockTransport(handler))
    outcome = _deliver(client, build_payload("abc", "c", now=0))

    assert not outcome.ok
    assert outcome.status_code is None
    assert outcome.error_type == "ConnectError"

    failures = debug_log.of_type("heartbeat_failed")
    assert len(failures) == 1
    assert "connection refused" in failures[0].fields["message"]


def test_failing_notify_is_logged_not_raised(debug_log) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    def notify(message: str) -> None:
        raise RuntimeError("status line gone")

    client = DeliveryClient(
        ENDPOINT,
        log=debug_log,
        notify=notify,
        transport=httpx.MockTransport(handler),
    )
    outcome = _deliver(client, build_payload("abc", "c", now=0))

    assert not outcome.ok
    assert len(debug_log.of_type("heartbeat_failed")) == 1

    notify_failures = debug_log.of_type("notify_failed")
    assert len(notify_failures) == 1
    assert notify_failures[0].fields["error_type"] == "RuntimeError"
