"""Backend contract and failure taxonomy.

Concrete backends live in their own modules (``github_backend``).
"""

from .base import (
    Backend,
    BackendError,
    FailureKind,
    FetchError,
    FetchResult,
    FetchTimeout,
    NotFoundError,
    RateLimitedError,
    RequestSpec,
    ServerError,
    UnknownFetchError,
)

__all__ = [
    # Base classes
    "Backend",
    "RequestSpec",
    "FetchResult",
    "FailureKind",
    # Errors
    "BackendError",
    "FetchError",
    "RateLimitedError",
    "NotFoundError",
    "ServerError",
    "FetchTimeout",
    "UnknownFetchError",
]
