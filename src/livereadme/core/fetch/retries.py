"""
Retry utilities with tenacity.

One parameterized exponential-backoff policy used by every backend
call: only retryable classifications are retried, and each scheduled
retry is recorded as a ``RetryAttempt``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from livereadme.core.backends.base import FetchError

logger = logging.getLogger(__name__)

T = TypeVar("T")


# Default retry configuration
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 1.0  # seconds
DEFAULT_MAX_DELAY = 30.0  # seconds
DEFAULT_MULTIPLIER = 2


@dataclass(frozen=True)
class RetryAttempt:
    """A scheduled retry within one logical fetch."""

    attempt_number: int
    delay_before_next_ms: int


def is_retryable(exc: BaseException) -> bool:
    """Retry predicate: only classified fetch errors marked retryable."""
    return isinstance(exc, FetchError) and exc.retryable


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        max_delay: float = DEFAULT_MAX_DELAY,
        multiplier: float = DEFAULT_MULTIPLIER,
        retry_if: Callable[[BaseException], bool] = is_retryable,
    ):
        """Initialize retry configuration.

        Args:
            max_attempts: Maximum number of attempts (first call included)
            base_delay: Delay before the first retry, in seconds
            max_delay: Upper bound for any single delay, in seconds
            multiplier: Growth factor between consecutive delays
            retry_if: Predicate selecting exceptions worth retrying
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.multiplier = multiplier
        self.retry_if = retry_if

    def wait_strategy(self) -> wait_exponential:
        # base, base*m, base*m^2, ... capped at max_delay
        return wait_exponential(
            multiplier=self.base_delay,
            exp_base=self.multiplier,
            max=self.max_delay,
        )

    def delays(self) -> list[float]:
        """Delays (seconds) inserted between attempts when every attempt fails."""
        return [
            min(self.base_delay * self.multiplier**i, self.max_delay)
            for i in range(self.max_attempts - 1)
        ]


async def retry_async(
    coro_func: Callable[..., Awaitable[T]],
    *args: Any,
    config: RetryConfig | None = None,
    operation: str | None = None,
    attempts: list[RetryAttempt] | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    **kwargs: Any,
) -> T:
    """Execute an async function with retry logic.

    Non-retryable exceptions propagate immediately. After the attempt
    budget is exhausted the last exception is re-raised; when it is a
    ``FetchError`` its ``attempts`` attribute holds the number of calls made.

    Args:
        coro_func: Async function to call
        *args: Positional arguments
        config: Retry configuration
        operation: Name used in log records
        attempts: Optional list collecting the scheduled retries
        sleep: Awaitable sleep used for backoff delays
        **kwargs: Keyword arguments

    Returns:
        Function result
    """
    if config is None:
        config = RetryConfig()
    if attempts is None:
        attempts = []

    def before_sleep(retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        attempt = RetryAttempt(
            attempt_number=retry_state.attempt_number,
            delay_before_next_ms=int(round(delay * 1000)),
        )
        attempts.append(attempt)
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        classification = getattr(exc, "classification", None)
        logger.warning(
            "%s failed (%s, attempt %d/%d), retrying in %d ms: %s",
            operation or getattr(coro_func, "__name__", "call"),
            classification.value if classification else type(exc).__name__,
            attempt.attempt_number,
            config.max_attempts,
            attempt.delay_before_next_ms,
            exc,
            extra={
                "operation": operation,
                "attempt": attempt.attempt_number,
                "classification": classification.value if classification else None,
            },
        )

    attempt_number = 0
    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(config.max_attempts),
            wait=config.wait_strategy(),
            retry=retry_if_exception(config.retry_if),
            before_sleep=before_sleep,
            sleep=sleep,
            reraise=True,
        ):
            with attempt:
                attempt_number = attempt.retry_state.attempt_number
                return await coro_func(*args, **kwargs)
    except FetchError as e:
        e.attempts = attempt_number
        raise
    raise AssertionError("unreachable")  # pragma: no cover
