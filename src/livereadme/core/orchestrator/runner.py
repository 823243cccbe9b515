"""
Profile data runner.

Coordinates the data sources of the profile page: recent push activity,
last commit time, language statistics and the profile repository head.
Each source degrades independently to a documented placeholder.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any
from zoneinfo import ZoneInfo

from livereadme.core.backends.base import RequestSpec
from livereadme.core.backends.github_backend import GitHubBackend
from livereadme.core.fetch.caching import ResponseCache
from livereadme.core.fetch.throttling import RateLimiter, ThrottleConfig
from livereadme.core.orchestrator.fetcher import CachedFetcher, FetchOutcome

if TYPE_CHECKING:
    from livereadme.core.config.models import AppConfig, Credentials


logger = logging.getLogger(__name__)


# Placeholders used when a source has neither live nor cached data
NO_RECENT_ACTIVITY = "no recent activity"
UNKNOWN_LAST_COMMIT = "unknown"
DEFAULT_COMMIT_HASH = "latest"

EVENTS_PER_PAGE = 30
MAX_RECENT_COMMITS = 5
COMMIT_MESSAGE_LIMIT = 50
HEAD_MESSAGE_LIMIT = 30
REPOS_PER_PAGE = 10
MAX_LANGUAGE_REPOS = 8
REPO_MAX_AGE_DAYS = 180
TOP_LANGUAGES = 5


@dataclass(frozen=True)
class CommitLine:
    """One entry of the activity log."""

    timestamp: datetime
    message: str
    repo: str


@dataclass(frozen=True)
class LanguageShare:
    """A language's share of the sampled source bytes."""

    name: str
    bytes: int
    percent: float


@dataclass
class ProfileData:
    """Everything the profile page shows."""

    username: str
    recent_commits: list[CommitLine] = field(default_factory=list)
    last_commit: str = UNKNOWN_LAST_COMMIT
    languages: list[LanguageShare] = field(default_factory=list)
    commit_hash: str = DEFAULT_COMMIT_HASH
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    degraded_sources: list[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.degraded_sources)


def truncate(text: str, limit: int) -> str:
    """Cut ``text`` to ``limit`` characters, marking the cut with '...'."""
    return text if len(text) <= limit else text[:limit] + "..."


def parse_timestamp(value: str) -> datetime:
    """Parse a GitHub ISO-8601 timestamp (``2024-01-02T03:04:05Z``)."""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def format_relative_time(then: datetime, now: datetime) -> str:
    """Human relative time: 'just now', 'N minutes ago', 'N hours ago', 'N days ago'."""
    minutes = int((now - then).total_seconds() // 60)
    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes} minute{'' if minutes == 1 else 's'} ago"
    if minutes < 1440:
        hours = minutes // 60
        return f"{hours} hour{'' if hours == 1 else 's'} ago"
    days = minutes // 1440
    return f"{days} day{'' if days == 1 else 's'} ago"


def _push_events(events: Any) -> list[dict[str, Any]]:
    if not isinstance(events, list):
        return []
    return [e for e in events if isinstance(e, dict) and e.get("type") == "PushEvent"]


def summarize_languages(totals: Counter[str], top: int = TOP_LANGUAGES) -> list[LanguageShare]:
    """Turn summed byte counts into the top ``top`` shares, largest first."""
    total = sum(totals.values())
    if total <= 0:
        return []
    ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))[:top]
    return [
        LanguageShare(name=name, bytes=count, percent=count / total * 100)
        for name, count in ranked
    ]


class ProfileRunner:
    """Collects the profile page data for one account.

    Coordinates:
    - Cache-first fetches of every source
    - Concurrent per-repository language lookups
    - Placeholder substitution per source
    """

    def __init__(
        self,
        fetcher: CachedFetcher,
        username: str,
        *,
        tz: str = "UTC",
        now: datetime | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            fetcher: Cache-first fetcher owned by this run
            username: GitHub account to describe
            tz: IANA timezone for rendered timestamps
            now: Fixed "current time" (tests); defaults to the wall clock
        """
        self.fetcher = fetcher
        self.username = username
        self.tz = ZoneInfo(tz)
        self._now = now
        self._degraded: list[str] = []

    @property
    def now(self) -> datetime:
        return self._now or datetime.now(timezone.utc)

    def _track(self, source: str, outcome: FetchOutcome) -> None:
        if outcome.degraded and source not in self._degraded:
            self._degraded.append(source)

    # -------------------------------------------------------------------------
    # Sources
    # -------------------------------------------------------------------------

    def _events_request(self) -> RequestSpec:
        return RequestSpec(
            path=f"/users/{self.username}/events/public",
            params={"per_page": EVENTS_PER_PAGE},
            operation="events",
        )

    async def recent_commits(self) -> list[CommitLine]:
        """Latest push commits, newest first; empty means no recent activity."""
        outcome = await self.fetcher.fetch(self._events_request(), placeholder=[])
        self._track("recent_activity", outcome)

        lines: list[CommitLine] = []
        for event in _push_events(outcome.value):
            commits = (event.get("payload") or {}).get("commits") or []
            if not commits:
                continue
            message = (commits[-1].get("message") or "Updated files").split("\n")[0]
            repo = (event.get("repo") or {}).get("name", "")
            try:
                timestamp = parse_timestamp(event["created_at"]).astimezone(self.tz)
            except (KeyError, TypeError, ValueError):
                continue
            lines.append(
                CommitLine(
                    timestamp=timestamp,
                    message=truncate(message, COMMIT_MESSAGE_LIMIT),
                    repo=repo.split("/")[-1],
                )
            )
            if len(lines) == MAX_RECENT_COMMITS:
                break
        return lines

    async def last_commit_time(self) -> str:
        """Relative time of the newest push event."""
        outcome = await self.fetcher.fetch(self._events_request(), placeholder=[])
        self._track("last_commit", outcome)

        for event in _push_events(outcome.value):
            try:
                return format_relative_time(parse_timestamp(event["created_at"]), self.now)
            except (KeyError, TypeError, ValueError):
                continue
        return UNKNOWN_LAST_COMMIT

    def _full_name(self, repo: dict[str, Any]) -> str:
        return repo.get("full_name") or f"{self.username}/{repo.get('name')}"

    async def language_stats(self) -> list[LanguageShare]:
        """Language byte shares across recently updated, non-fork repositories."""
        outcome = await self.fetcher.fetch(
            RequestSpec(
                path=f"/users/{self.username}/repos",
                params={"sort": "updated", "per_page": REPOS_PER_PAGE},
                operation="repos",
            ),
            placeholder=[],
        )
        self._track("languages", outcome)

        cutoff = self.now - timedelta(days=REPO_MAX_AGE_DAYS)
        repos: list[dict[str, Any]] = []
        for repo in outcome.value if isinstance(outcome.value, list) else []:
            if not isinstance(repo, dict) or repo.get("fork"):
                continue
            try:
                if parse_timestamp(repo["updated_at"]) < cutoff:
                    continue
            except (KeyError, TypeError, ValueError):
                continue
            repos.append(repo)
        repos = repos[:MAX_LANGUAGE_REPOS]

        logger.info("Processing %d repositories for language stats", len(repos))

        results = await self.fetcher.fetch_many(
            [
                RequestSpec(
                    path=f"/repos/{self._full_name(repo)}/languages",
                    operation="languages",
                )
                for repo in repos
            ],
            placeholder={},
        )

        # Summed, so completion order does not matter
        totals: Counter[str] = Counter()
        for result in results:
            self._track("languages", result)
            if isinstance(result.value, dict):
                for language, count in result.value.items():
                    if isinstance(count, int) and count > 0:
                        totals[language] += count

        shares = summarize_languages(totals)
        if not shares:
            logger.warning("No language data across %d repositories", len(repos))
        return shares

    async def commit_hash(self) -> str:
        """Short SHA and subject of the profile repository's head commit."""
        outcome = await self.fetcher.fetch(
            RequestSpec(
                path=f"/repos/{self.username}/{self.username}/commits",
                params={"per_page": 1},
                operation="commit_hash",
            ),
            placeholder=[],
        )
        self._track("commit_hash", outcome)

        commits = outcome.value
        if isinstance(commits, list) and commits and isinstance(commits[0], dict):
            head = commits[0]
            sha = str(head.get("sha") or "")[:7]
            message = ((head.get("commit") or {}).get("message") or "").split("\n")[0]
            if sha:
                return f"{sha} - {truncate(message, HEAD_MESSAGE_LIMIT)}"
        return DEFAULT_COMMIT_HASH

    # -------------------------------------------------------------------------
    # Run
    # -------------------------------------------------------------------------

    async def run(self) -> ProfileData:
        """Collect every source concurrently.

        Returns:
            ProfileData; degraded sources are listed in ``degraded_sources``
        """
        self._degraded = []
        logger.info("Fetching profile data for %s", self.username)

        recent, last, languages, head = await asyncio.gather(
            self.recent_commits(),
            self.last_commit_time(),
            self.language_stats(),
            self.commit_hash(),
        )

        data = ProfileData(
            username=self.username,
            recent_commits=recent,
            last_commit=last,
            languages=languages,
            commit_hash=head,
            generated_at=self.now.astimezone(self.tz),
            degraded_sources=sorted(self._degraded),
        )

        if data.degraded:
            logger.warning("Degraded sources: %s", ", ".join(data.degraded_sources))
        else:
            logger.info("All data fetched successfully")
        return data


async def collect_profile(
    config: AppConfig,
    credentials: Credentials,
    **backend_kwargs: Any,
) -> ProfileData:
    """Collect one profile's data with a cache and backend owned by this run.

    Args:
        config: Application configuration
        credentials: Token and target account
        **backend_kwargs: Extra GitHubBackend arguments (transport, sleep)
    """
    cache = ResponseCache(ttl_seconds=config.cache.ttl_seconds)
    limiter = RateLimiter(
        ThrottleConfig(
            max_concurrency=config.throttle.max_concurrency,
            low_quota_threshold=config.throttle.low_quota_threshold,
            max_backpressure_wait=config.throttle.max_backpressure_wait_seconds,
        )
    )

    async with GitHubBackend.from_config(config, credentials.token, **backend_kwargs) as backend:
        fetcher = CachedFetcher(backend, cache, limiter)
        runner = ProfileRunner(fetcher, credentials.username, tz=config.profile.timezone)
        data = await runner.run()

    logger.debug("Cache: %s", cache.stats())
    logger.debug("Throttle: %s", limiter.stats())
    logger.info("%d API requests issued", fetcher.network_calls)
    return data
