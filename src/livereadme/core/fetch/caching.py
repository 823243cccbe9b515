"""
In-memory response cache.

Each run owns one ``ResponseCache``; entries live for the lifetime of
the process and are never persisted.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

DEFAULT_TTL_SECONDS = 300.0


@dataclass(frozen=True)
class CacheEntry:
    """A successful response stamped with its retrieval time."""

    key: str
    value: Any
    fetched_at: float

    def age(self, now: float) -> float:
        return now - self.fetched_at


class ResponseCache:
    """Key-value store of successful responses with a fixed TTL.

    Entries are immutable and replaced wholesale, so a reader of a key
    observes either the previous or the newly written entry.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the cache.

        Args:
            ttl_seconds: Validity window of an entry
            clock: Returns the current time in seconds
        """
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must not be negative")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def now(self) -> float:
        return self._clock()

    def get(self, key: str) -> CacheEntry | None:
        """Return the entry for ``key`` if it is still fresh."""
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.age(self._clock()) < self.ttl_seconds:
            return entry
        return None

    def get_stale(self, key: str) -> CacheEntry | None:
        """Return the entry for ``key`` regardless of age."""
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, value: Any) -> CacheEntry:
        """Store ``value`` under ``key``, replacing any previous entry."""
        entry = CacheEntry(key=key, value=value, fetched_at=self._clock())
        with self._lock:
            self._entries[key] = entry
        return entry

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        now = self._clock()
        with self._lock:
            entries = list(self._entries.values())
        fresh = sum(1 for e in entries if e.age(now) < self.ttl_seconds)
        return {
            "entries": len(entries),
            "fresh": fresh,
            "stale": len(entries) - fresh,
            "ttl_seconds": self.ttl_seconds,
        }
