from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from typing import Any

import httpx

from .errors import DataUnavailableError, FetchFatalError, FetchTransientError

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 1.0
    retry_statuses: frozenset[int] = field(default_factory=lambda: frozenset({429, 502, 503}))
    retry_timeouts: bool = True

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")

    def is_retryable_status(self, status_code: int) -> bool:
        return status_code in self.retry_statuses

    def delay_for(self, attempt: int) -> float:
        """Backoff before retrying after the zero-based ``attempt`` failed."""
        return self.base_delay * (2**attempt)

    def with_base_delay(self, base_delay: float) -> RetryPolicy:
        return replace(self, base_delay=base_delay)


class RequestGate:
    """Enforces a minimum spacing between any two outbound requests."""

    def __init__(
        self,
        min_interval: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_call: float | None = None
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        async with self._lock:
            if self._last_call is not None:
                elapsed = self._clock() - self._last_call
                if elapsed < self.min_interval:
                    await self._sleep(self.min_interval - elapsed)
            self._last_call = self._clock()


class JsonFetcher:
    def __init__(
        self,
        gate: RequestGate,
        policy: RetryPolicy | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.gate = gate
        self.policy = policy or RetryPolicy()
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._sleep = sleep

    async def close(self) -> None:
        await self._client.aclose()

    async def get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        policy: RetryPolicy | None = None,
    ) -> Any:
        policy = policy or self.policy

        for attempt in range(policy.max_attempts):
            last_attempt = attempt == policy.max_attempts - 1
            await self.gate.wait()
            try:
                response = await self._client.get(url, params=params)
            except httpx.TimeoutException as exc:
                if not policy.retry_timeouts or last_attempt:
                    raise FetchTransientError(f"timeout fetching {url}", url=url) from exc
                delay = policy.delay_for(attempt)
                logger.debug("Timeout on %s, retry %d/%d in %.1fs", url, attempt + 1, policy.max_attempts, delay)
                await self._sleep(delay)
                continue
            except httpx.HTTPError as exc:
                raise FetchFatalError(f"request to {url} failed: {exc}", url=url) from exc

            status = response.status_code
            if policy.is_retryable_status(status):
                if last_attempt:
                    raise FetchTransientError(f"HTTP {status} from {url}", url=url, status_code=status)
                delay = policy.delay_for(attempt)
                logger.info("API %d, retry %d/%d in %.1fs", status, attempt + 1, policy.max_attempts, delay)
                await self._sleep(delay)
                continue

            if status >= 400:
                raise FetchFatalError(f"HTTP {status} from {url}", url=url, status_code=status)

            try:
                return response.json()
            except ValueError as exc:
                raise DataUnavailableError(f"non-JSON response from {url}") from exc
