"""
GitHub REST API backend using httpx.

Provides async JSON fetching with:
- Token authentication and a pinned API media type
- Fixed per-request timeout
- Exponential-backoff retry for retryable failures
- Rate limit detection and header parsing
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable

import httpx

from livereadme import __app_name__, __version__
from livereadme.core.fetch.retries import RetryAttempt, RetryConfig, retry_async
from livereadme.core.fetch.throttling import RateLimitState

from .base import (
    Backend,
    FetchError,
    FetchResult,
    FetchTimeout,
    NotFoundError,
    RateLimitedError,
    RequestSpec,
    ServerError,
    UnknownFetchError,
)

if TYPE_CHECKING:
    from livereadme.core.config.models import AppConfig

logger = logging.getLogger(__name__)


DEFAULT_BASE_URL = "https://api.github.com"
DEFAULT_ACCEPT = "application/vnd.github.v3+json"
DEFAULT_TIMEOUT = 10.0  # seconds

# Status codes GitHub uses for primary and secondary rate limits
RATE_LIMIT_STATUS_CODES = {403, 429}


class GitHubBackend(Backend):
    """Backend for the GitHub REST API.

    Features:
    - Persistent connection pooling
    - Classified failures (rate limited, not found, server error, timeout)
    - Retry with exponential backoff for retryable classifications
    - Rate-limit state surfaced on every result
    """

    def __init__(
        self,
        token: str | None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        accept: str = DEFAULT_ACCEPT,
        user_agent: str | None = None,
        retry: RetryConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize GitHub backend.

        Args:
            token: Personal access token (None for unauthenticated calls)
            base_url: REST API root
            timeout: Per-request timeout in seconds
            accept: Versioned media type sent in the Accept header
            user_agent: Custom user agent
            retry: Retry policy (default: 3 attempts, 1s doubling)
            transport: Optional httpx transport (tests use MockTransport)
            sleep: Awaitable sleep used for backoff delays
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry = retry or RetryConfig()
        self._transport = transport
        self._sleep = sleep

        self.default_headers = {
            "Accept": accept,
            "User-Agent": user_agent or f"{__app_name__}/{__version__}",
        }
        if token:
            self.default_headers["Authorization"] = f"token {token}"

        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        token: str | None,
        **kwargs: Any,
    ) -> "GitHubBackend":
        """Build a backend from the application configuration."""
        return cls(
            token,
            base_url=config.api.base_url,
            timeout=config.api.timeout_seconds,
            accept=config.api.accept,
            user_agent=config.api.user_agent,
            retry=RetryConfig(
                max_attempts=config.retry.max_attempts,
                base_delay=config.retry.base_delay_seconds,
                max_delay=config.retry.max_delay_seconds,
            ),
            **kwargs,
        )

    @property
    def name(self) -> str:
        return "github"

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                headers=self.default_headers,
                transport=self._transport,
                limits=httpx.Limits(
                    max_connections=20,
                    max_keepalive_connections=10,
                ),
            )
        return self._client

    def _classify(self, response: httpx.Response) -> FetchError:
        """Map a non-2xx response onto the failure taxonomy."""
        url = str(response.request.url)
        status = response.status_code
        rate_limit = RateLimitState.from_headers(response.headers)

        if status in RATE_LIMIT_STATUS_CODES:
            retry_after = _float_or_none(response.headers.get("Retry-After"))
            exhausted = rate_limit is not None and rate_limit.exhausted
            if status == 429 or exhausted or retry_after is not None:
                return RateLimitedError(
                    f"Rate limit exceeded ({status})",
                    url=url,
                    status_code=status,
                    rate_limit=rate_limit,
                    retry_after=retry_after,
                )

        if status == 404:
            return NotFoundError("Resource not found", url=url, status_code=status)
        if status >= 500:
            return ServerError(f"Server error {status}", url=url, status_code=status)
        return UnknownFetchError(
            f"Unexpected status {status}: {_message(response)}",
            url=url,
            status_code=status,
        )

    async def _fetch_once(self, request: RequestSpec) -> FetchResult:
        client = await self._ensure_client()
        start = time.perf_counter()

        try:
            response = await client.get(request.path, params=request.params or None)
        except httpx.TimeoutException as e:
            raise FetchTimeout(
                f"Request timed out after {self.timeout:.0f}s",
                url=f"{self.base_url}{request.path}",
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            raise UnknownFetchError(
                f"Transport error: {e}",
                url=f"{self.base_url}{request.path}",
                cause=e,
            ) from e

        elapsed_ms = (time.perf_counter() - start) * 1000

        if not response.is_success:
            raise self._classify(response)

        try:
            data = response.json()
        except ValueError as e:
            raise UnknownFetchError(
                "Response body is not valid JSON",
                url=str(response.request.url),
                status_code=response.status_code,
                cause=e,
            ) from e

        return FetchResult(
            url=str(response.request.url),
            status_code=response.status_code,
            data=data,
            rate_limit=RateLimitState.from_headers(response.headers),
            elapsed_ms=elapsed_ms,
        )

    async def fetch(self, request: RequestSpec) -> FetchResult:
        """Fetch a JSON resource with automatic retry.

        Args:
            request: Request specification

        Returns:
            FetchResult with the decoded body

        Raises:
            FetchError: Classified failure
        """
        attempts: list[RetryAttempt] = []
        result = await retry_async(
            self._fetch_once,
            request,
            config=self.retry,
            operation=request.operation or request.path,
            attempts=attempts,
            sleep=self._sleep,
        )
        result.attempts = attempts
        result.retry_count = len(attempts)
        return result

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None


def _float_or_none(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _message(response: httpx.Response) -> str:
    """Extract GitHub's error message from a response body."""
    try:
        body: Any = response.json()
    except ValueError:
        return response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase
