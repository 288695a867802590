"""
Bounded-concurrency executor for outbound booking-system calls.

Every request runs while holding one permit of a shared asyncio.Semaphore. A 429
response is retried on a fixed back-off schedule (Retry-After wins when the upstream
sends one); the back-off sleep happens outside the permit so other requests keep
flowing. Anything raised by the request itself propagates untouched.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Sequence

import httpx

from slot_discovery.core.errors import RateLimitExceeded

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 8
DEFAULT_RETRY_DELAYS: tuple[float, ...] = (1, 2, 5, 10)
STATUS_TOO_MANY_REQUESTS = 429
MAX_RETRY_AFTER_SECONDS = 60


def _retry_after_seconds(response: httpx.Response) -> int | None:
    """Retry-After as whole seconds, capped at MAX_RETRY_AFTER_SECONDS; None when absent or unparseable."""
    raw = response.headers.get("retry-after")
    if raw is None:
        return None
    raw = raw.strip()
    if not raw.isdecimal():
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return min(value, MAX_RETRY_AFTER_SECONDS)


class RateLimitedClient:
    """Executes request callables under a shared concurrency limit with 429 retries."""

    def __init__(
        self,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        retry_delays: Sequence[float] = DEFAULT_RETRY_DELAYS,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.max_concurrency = max_concurrency
        self.retry_delays = tuple(retry_delays)
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._sleep = sleep
        self._in_flight = 0

    @property
    def max_retries(self) -> int:
        return len(self.retry_delays)

    @property
    def in_flight(self) -> int:
        return self._in_flight

    async def _attempt(self, request_fn: Callable[[], Awaitable[httpx.Response]]) -> httpx.Response:
        async with self._semaphore:
            self._in_flight += 1
            try:
                return await request_fn()
            finally:
                self._in_flight -= 1

    async def execute(self, request_fn: Callable[[], Awaitable[httpx.Response]]) -> httpx.Response:
        """Run request_fn; retry on 429 per the delay schedule, then raise RateLimitExceeded."""
        retry_count = 0
        while True:
            response = await self._attempt(request_fn)
            if response.status_code != STATUS_TOO_MANY_REQUESTS:
                return response
            if retry_count >= self.max_retries:
                logger.error("Max retries (%s) exceeded for rate limited request", self.max_retries)
                raise RateLimitExceeded(attempts=retry_count + 1)
            delay = _retry_after_seconds(response)
            if delay is None:
                delay = self.retry_delays[retry_count]
            retry_count += 1
            logger.warning(
                "Rate limited. Retrying in %ss (attempt %s/%s)", delay, retry_count, self.max_retries
            )
            if delay > 0:
                await self._sleep(delay)
