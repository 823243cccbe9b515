"""Fetch utilities - throttling, retries, caching."""

from .caching import CacheEntry, ResponseCache
from .retries import RetryAttempt, RetryConfig, is_retryable, retry_async
from .throttling import RateLimiter, RateLimitState, ThrottleConfig

__all__ = [
    "CacheEntry",
    "ResponseCache",
    "RetryAttempt",
    "RetryConfig",
    "is_retryable",
    "retry_async",
    "RateLimiter",
    "RateLimitState",
    "ThrottleConfig",
]
