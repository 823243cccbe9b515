"""
Rate limiting and throttling utilities.

Bounds the number of in-flight API requests and turns the advisory
rate-limit headers into backpressure on new dispatches.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping

logger = logging.getLogger(__name__)

MAX_FAN_OUT = 10


@dataclass(frozen=True)
class RateLimitState:
    """Quota information from the ``X-RateLimit-*`` response headers."""

    remaining: int
    reset_at: float | None = None  # epoch seconds
    limit: int | None = None
    used: int | None = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> RateLimitState | None:
        """Parse rate-limit headers, or None when the response carries none."""
        remaining = _int_header(headers, "x-ratelimit-remaining")
        if remaining is None:
            return None
        reset = _int_header(headers, "x-ratelimit-reset")
        return cls(
            remaining=remaining,
            reset_at=float(reset) if reset is not None else None,
            limit=_int_header(headers, "x-ratelimit-limit"),
            used=_int_header(headers, "x-ratelimit-used"),
        )

    @property
    def exhausted(self) -> bool:
        return self.remaining <= 0

    def seconds_until_reset(self, now: float) -> float:
        if self.reset_at is None:
            return 0.0
        return max(0.0, self.reset_at - now)


def _int_header(headers: Mapping[str, str], name: str) -> int | None:
    value = headers.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


@dataclass
class ThrottleConfig:
    """Configuration for request dispatch."""

    max_concurrency: int = MAX_FAN_OUT
    low_quota_threshold: int = 50
    max_backpressure_wait: float = 60.0  # seconds


class RateLimiter:
    """Bounded fan-out dispatcher with quota backpressure.

    Features:
    - At most ``max_concurrency`` requests in flight
    - Latest observed ``RateLimitState`` kept as advisory state
    - Low remaining quota spreads new dispatches over the reset window
    """

    def __init__(
        self,
        config: ThrottleConfig | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize rate limiter.

        Args:
            config: Throttle configuration
            clock: Returns the current epoch time in seconds
            sleep: Awaitable sleep used for backpressure delays
        """
        self.config = config or ThrottleConfig()
        if not 1 <= self.config.max_concurrency <= MAX_FAN_OUT:
            raise ValueError(f"max_concurrency must be between 1 and {MAX_FAN_OUT}")
        self._clock = clock
        self._sleep = sleep
        self._semaphore = asyncio.Semaphore(self.config.max_concurrency)
        self._state: RateLimitState | None = None
        self._warned_for: RateLimitState | None = None
        self._in_flight = 0
        self._peak_in_flight = 0
        self._total_backpressure = 0.0
        self._next_dispatch_at = 0.0

    @property
    def state(self) -> RateLimitState | None:
        """Most recently observed rate-limit state."""
        return self._state

    def observe(self, state: RateLimitState | None) -> None:
        """Record the rate-limit state carried by a response."""
        if state is None:
            return
        self._state = state
        if state.remaining < self.config.low_quota_threshold and state != self._warned_for:
            self._warned_for = state
            logger.warning(
                "GitHub rate limit low: %d remaining (resets in %.0fs)",
                state.remaining,
                state.seconds_until_reset(self._clock()),
            )

    def backpressure_delay(self) -> float:
        """Seconds to hold the next dispatch given the observed quota."""
        state = self._state
        if state is None or state.reset_at is None:
            return 0.0
        until_reset = state.seconds_until_reset(self._clock())
        if until_reset <= 0:
            return 0.0
        cap = self.config.max_backpressure_wait
        if state.remaining <= 0:
            # Past the cap the request goes out and fails as rate limited
            return until_reset if until_reset <= cap else 0.0
        if state.remaining < self.config.low_quota_threshold:
            return min(until_reset / state.remaining, cap)
        return 0.0

    def _reserve_dispatch(self) -> float:
        """Claim the next paced dispatch time and return the wait until it.

        While quota is low, consecutive dispatches are spaced one interval
        apart, concurrent acquirers included.
        """
        interval = self.backpressure_delay()
        if interval <= 0:
            return 0.0
        state = self._state
        if state is not None and state.remaining <= 0:
            # Everyone waits for the same reset
            return interval

        now = self._clock()
        slot_at = max(now, self._next_dispatch_at) + interval
        delay = min(slot_at - now, self.config.max_backpressure_wait)
        self._next_dispatch_at = now + delay
        return delay

    async def acquire(self) -> None:
        """Acquire a dispatch permit, applying backpressure first."""
        await self._semaphore.acquire()
        try:
            delay = self._reserve_dispatch()
            if delay > 0:
                logger.info("Throttling dispatch for %.1fs (low rate limit)", delay)
                self._total_backpressure += delay
                await self._sleep(delay)
        except BaseException:
            self._semaphore.release()
            raise
        self._in_flight += 1
        self._peak_in_flight = max(self._peak_in_flight, self._in_flight)

    def release(self) -> None:
        """Release a dispatch permit."""
        self._in_flight -= 1
        self._semaphore.release()

    def slot(self) -> "_RateLimitContext":
        """Context manager for a rate-limited dispatch.

        Usage:
            async with limiter.slot():
                await backend.fetch(request)
        """
        return _RateLimitContext(self)

    def stats(self) -> dict[str, Any]:
        """Get rate limiter statistics."""
        state = self._state
        return {
            "max_concurrency": self.config.max_concurrency,
            "in_flight": self._in_flight,
            "peak_in_flight": self._peak_in_flight,
            "backpressure_seconds": round(self._total_backpressure, 3),
            "remaining": state.remaining if state else None,
            "reset_at": state.reset_at if state else None,
        }


class _RateLimitContext:
    """Async context manager for rate limiting."""

    def __init__(self, limiter: RateLimiter):
        self.limiter = limiter

    async def __aenter__(self) -> None:
        await self.limiter.acquire()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.limiter.release()
