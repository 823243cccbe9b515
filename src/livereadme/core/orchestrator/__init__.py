"""Orchestrator - cache-first fetching and profile data collection."""

from .fetcher import CachedFetcher, FetchOutcome, FetchSource
from .runner import (
    CommitLine,
    LanguageShare,
    ProfileData,
    ProfileRunner,
    collect_profile,
)

__all__ = [
    "CachedFetcher",
    "FetchOutcome",
    "FetchSource",
    "CommitLine",
    "LanguageShare",
    "ProfileData",
    "ProfileRunner",
    "collect_profile",
]
