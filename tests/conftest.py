"""Shared test fixtures and fake collaborators."""

from __future__ import annotations

from typing import Any, Callable

import httpx

from livereadme.core.backends.github_backend import GitHubBackend
from livereadme.core.fetch.retries import RetryConfig

START_TIME = 1_700_000_000.0


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, start: float = START_TIME) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Awaitable sleep that records delays instead of waiting."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)


def json_response(
    data: Any,
    status: int = 200,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    return httpx.Response(status, json=data, headers=headers or {})


class Router:
    """MockTransport handler keyed by URL path.

    A route value may be a response, a list of responses served in
    order (the last one repeats), an exception to raise, or a callable
    taking the request.
    """

    def __init__(self, routes: dict[str, Any] | None = None) -> None:
        self.routes: dict[str, Any] = dict(routes or {})
        self.calls: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return json_response({"message": "Not Found"}, status=404)
        if isinstance(route, list):
            route = route.pop(0) if len(route) > 1 else route[0]
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(request)
        return route

    def paths(self) -> list[str]:
        return [request.url.path for request in self.calls]

    def count(self, path: str) -> int:
        return self.paths().count(path)


def make_backend(
    handler: Callable[[httpx.Request], httpx.Response],
    sleep: RecordingSleep | None = None,
    retry: RetryConfig | None = None,
) -> GitHubBackend:
    return GitHubBackend(
        "test-token",
        transport=httpx.MockTransport(handler),
        sleep=sleep or RecordingSleep(),
        retry=retry,
    )
