"""
Cache-first fetching with stale fallback.

Composes the response cache, the throttle and a backend:

1. a fresh cache entry is returned without touching the network;
2. otherwise the backend is called through the throttle, once per key
   even when several callers ask for it concurrently;
3. a success refreshes the cache;
4. a failure falls back to the last cached value, then to the caller's
   placeholder, and only then propagates the classified error.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from livereadme.core.backends.base import (
    Backend,
    FetchError,
    FetchResult,
    RateLimitedError,
    RequestSpec,
)
from livereadme.core.fetch.caching import ResponseCache
from livereadme.core.fetch.throttling import RateLimiter, RateLimitState
from livereadme.core.logging import get_contextual_logger

_NO_PLACEHOLDER: Any = object()


class FetchSource(str, Enum):
    """Where the value of a logical fetch came from."""

    LIVE = "live"
    CACHE = "cache"
    STALE = "stale"
    PLACEHOLDER = "placeholder"


@dataclass
class FetchOutcome:
    """Value of a logical fetch and how it was obtained."""

    key: str
    value: Any
    source: FetchSource
    error: FetchError | None = None

    @property
    def degraded(self) -> bool:
        return self.source in (FetchSource.STALE, FetchSource.PLACEHOLDER)


class CachedFetcher:
    """Fetch logical keys through a per-run cache and a throttled backend."""

    def __init__(
        self,
        backend: Backend,
        cache: ResponseCache,
        limiter: RateLimiter | None = None,
    ):
        self.backend = backend
        self.cache = cache
        self.limiter = limiter or RateLimiter()
        self.network_calls = 0
        self._inflight: dict[str, asyncio.Future[FetchResult]] = {}

    async def fetch(
        self,
        request: RequestSpec,
        *,
        placeholder: Any = _NO_PLACEHOLDER,
    ) -> FetchOutcome:
        """Fetch one logical key.

        Args:
            request: Request specification; its cache key indexes the cache
            placeholder: Value returned when the fetch fails and nothing is
                cached. Without one, the classified error propagates.

        Raises:
            FetchError: Only when no cached value and no placeholder exist
        """
        key = request.cache_key
        log = get_contextual_logger(
            "fetcher", operation=request.operation or request.path, key=key
        )

        entry = self.cache.get(key)
        if entry is not None:
            log.debug("Cache hit for %s", key, extra={"source": FetchSource.CACHE.value})
            return FetchOutcome(key=key, value=entry.value, source=FetchSource.CACHE)

        try:
            result = await self._fetch_live(request)
        except FetchError as e:
            return self._degrade(request, e, placeholder, log)

        log.debug(
            "Fetched %s in %.0f ms (%d retries)",
            key,
            result.elapsed_ms,
            result.retry_count,
            extra={"source": FetchSource.LIVE.value},
        )
        return FetchOutcome(key=key, value=result.data, source=FetchSource.LIVE)

    async def _fetch_live(self, request: RequestSpec) -> FetchResult:
        """Run one network fetch per key; concurrent callers share it."""
        key = request.cache_key
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._dispatch(request))
            self._inflight[key] = task
            task.add_done_callback(lambda _: self._inflight.pop(key, None))
        return await task

    async def _dispatch(self, request: RequestSpec) -> FetchResult:
        try:
            async with self.limiter.slot():
                self.network_calls += 1
                result = await self.backend.fetch(request)
        except RateLimitedError as e:
            state = e.rate_limit
            if state is None and e.reset_at is not None:
                # 429 or secondary limit: only Retry-After is known
                state = RateLimitState(remaining=0, reset_at=e.reset_at)
            self.limiter.observe(state)
            raise

        self.limiter.observe(result.rate_limit)
        self.cache.put(request.cache_key, result.data)
        return result

    def _degrade(
        self,
        request: RequestSpec,
        error: FetchError,
        placeholder: Any,
        log: Any,
    ) -> FetchOutcome:
        key = request.cache_key
        extra = {
            "classification": error.classification.value,
            "attempt": error.attempts,
        }

        stale = self.cache.get_stale(key)
        if stale is not None:
            log.warning(
                "Serving stale data for %s after %s failure (%d attempts, age %.0fs)",
                key,
                error.classification.value,
                error.attempts,
                stale.age(self.cache.now()),
                extra={**extra, "source": FetchSource.STALE.value},
            )
            return FetchOutcome(key=key, value=stale.value, source=FetchSource.STALE, error=error)

        if placeholder is _NO_PLACEHOLDER:
            log.error(
                "Fetch of %s failed: %s (%s, %d attempts)",
                key,
                error,
                error.classification.value,
                error.attempts,
                extra=extra,
            )
            raise error

        log.error(
            "Fetch of %s failed: %s (%s, %d attempts); using placeholder",
            key,
            error,
            error.classification.value,
            error.attempts,
            extra={**extra, "source": FetchSource.PLACEHOLDER.value},
        )
        return FetchOutcome(
            key=key, value=placeholder, source=FetchSource.PLACEHOLDER, error=error
        )

    async def fetch_many(
        self,
        requests: Iterable[RequestSpec],
        *,
        placeholder: Any = _NO_PLACEHOLDER,
    ) -> list[FetchOutcome]:
        """Fetch several keys concurrently, bounded by the limiter's fan-out.

        Results are returned in request order; completion order is not
        observable, so callers aggregating them need not care about it.
        """
        return list(
            await asyncio.gather(
                *(self.fetch(request, placeholder=placeholder) for request in requests)
            )
        )
