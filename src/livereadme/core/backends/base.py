"""
Backend base classes and data structures.

Defines the request/result contract and the classified failure
taxonomy shared by every API backend.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

if TYPE_CHECKING:
    from livereadme.core.fetch.retries import RetryAttempt
    from livereadme.core.fetch.throttling import RateLimitState


class FailureKind(str, Enum):
    """Classification of a failed fetch."""

    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


@dataclass
class RequestSpec:
    """Specification for an API request."""

    path: str
    params: dict[str, Any] = field(default_factory=dict)

    # Metadata for logging
    operation: str | None = None

    @property
    def cache_key(self) -> str:
        """Logical key: path plus query parameters sorted by name."""
        if not self.params:
            return self.path
        query = urlencode(sorted((k, str(v)) for k, v in self.params.items()))
        return f"{self.path}?{query}"


@dataclass
class FetchResult:
    """Result of a successful fetch operation."""

    url: str
    status_code: int
    data: Any
    rate_limit: RateLimitState | None

    # Timing
    elapsed_ms: float
    fetched_at: float = field(default_factory=time.time)

    # Metadata
    retry_count: int = 0
    attempts: list[RetryAttempt] = field(default_factory=list)


class Backend(ABC):
    """Abstract base class for API backends."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier."""
        pass

    @abstractmethod
    async def fetch(self, request: RequestSpec) -> FetchResult:
        """Fetch a resource and return the decoded response.

        Args:
            request: Request specification

        Returns:
            FetchResult with decoded body and rate-limit state

        Raises:
            FetchError: Classified failure once retries are exhausted
                or on a non-retryable condition
        """
        pass

    async def close(self) -> None:
        """Clean up backend resources."""
        pass

    async def __aenter__(self) -> "Backend":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


class BackendError(Exception):
    """Base exception for backend errors."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause


class FetchError(BackendError):
    """Classified error during a fetch operation."""

    classification: FailureKind = FailureKind.UNKNOWN
    retryable: bool = True

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, url=url, status_code=status_code, cause=cause)
        self.attempts = 1


class RateLimitedError(FetchError):
    """Quota exhausted (403/429). Callers should wait until ``reset_at``."""

    classification = FailureKind.RATE_LIMITED
    retryable = False

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = 429,
        rate_limit: RateLimitState | None = None,
        retry_after: float | None = None,
    ):
        super().__init__(message, url=url, status_code=status_code)
        self.rate_limit = rate_limit
        self.retry_after = retry_after

    @property
    def reset_at(self) -> float | None:
        if self.rate_limit is not None and self.rate_limit.reset_at is not None:
            return self.rate_limit.reset_at
        if self.retry_after is not None:
            return time.time() + self.retry_after
        return None


class NotFoundError(FetchError):
    """Resource does not exist (404)."""

    classification = FailureKind.NOT_FOUND
    retryable = False


class ServerError(FetchError):
    """Remote server failure (5xx)."""

    classification = FailureKind.SERVER_ERROR


class FetchTimeout(FetchError):
    """Request exceeded its deadline."""

    classification = FailureKind.TIMEOUT


class UnknownFetchError(FetchError):
    """Any other transport or response failure."""

    classification = FailureKind.UNKNOWN
