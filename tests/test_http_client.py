import asyncio

import httpx
import pytest

from buy_alert_bot.errors import DataUnavailableError, FetchFatalError, FetchTransientError
from buy_alert_bot.http_client import JsonFetcher, RequestGate, RetryPolicy


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _fetcher(handler, policy: RetryPolicy | None = None) -> tuple[JsonFetcher, list[float]]:
    delays: list[float] = []

    async def record(seconds: float) -> None:
        delays.append(seconds)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    fetcher = JsonFetcher(RequestGate(0.0), policy or RetryPolicy(), client=client, sleep=record)
    return fetcher, delays


def test_retry_policy_backoff_is_exponential() -> None:
    policy = RetryPolicy(max_attempts=3, base_delay=1.0)
    assert [policy.delay_for(i) for i in range(3)] == [1.0, 2.0, 4.0]
    assert policy.with_base_delay(2.0).delay_for(1) == 4.0
    assert policy.is_retryable_status(429)
    assert policy.is_retryable_status(503)
    assert not policy.is_retryable_status(500)


def test_retry_policy_rejects_zero_attempts() -> None:
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)


def test_gate_spaces_consecutive_calls() -> None:
    clock = FakeClock()
    gate = RequestGate(0.5, clock=clock, sleep=clock.sleep)

    async def scenario() -> None:
        await gate.wait()
        clock.now += 0.2
        await gate.wait()
        clock.now += 1.0
        await gate.wait()

    asyncio.run(scenario())
    assert clock.sleeps == [pytest.approx(0.3)]


def test_get_json_retries_busy_status_then_succeeds() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(503)
        return httpx.Response(200, json={"ok": True})

    fetcher, delays = _fetcher(handler)
    assert asyncio.run(fetcher.get_json("https://example.com/x")) == {"ok": True}
    assert len(calls) == 3
    assert delays == [1.0, 2.0]


def test_get_json_raises_transient_after_exhausting_retries() -> None:
    fetcher, delays = _fetcher(lambda request: httpx.Response(429))
    with pytest.raises(FetchTransientError) as info:
        asyncio.run(fetcher.get_json("https://example.com/x"))
    assert info.value.status_code == 429
    assert delays == [1.0, 2.0]


def test_get_json_does_not_retry_other_statuses() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(404)

    fetcher, delays = _fetcher(handler)
    with pytest.raises(FetchFatalError) as info:
        asyncio.run(fetcher.get_json("https://example.com/x"))
    assert info.value.status_code == 404
    assert len(calls) == 1
    assert delays == []


def test_get_json_timeout_is_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    fetcher, delays = _fetcher(handler, RetryPolicy(max_attempts=2, base_delay=0.5))
    with pytest.raises(FetchTransientError) as info:
        asyncio.run(fetcher.get_json("https://example.com/x"))
    assert info.value.status_code is None
    assert delays == [0.5]


def test_get_json_connection_error_is_fatal() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    fetcher, _ = _fetcher(handler)
    with pytest.raises(FetchFatalError):
        asyncio.run(fetcher.get_json("https://example.com/x"))


def test_get_json_non_json_body_is_data_unavailable() -> None:
    fetcher, _ = _fetcher(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(DataUnavailableError):
        asyncio.run(fetcher.get_json("https://example.com/x"))
