import httpx
import pytest

from conftest import RecordingSleep, Router, json_response, make_backend
from livereadme.core.backends.base import (
    FailureKind,
    FetchTimeout,
    NotFoundError,
    RateLimitedError,
    RequestSpec,
    ServerError,
    UnknownFetchError,
)


def test_cache_key_sorts_params() -> None:
    a = RequestSpec(path="/users/x/repos", params={"sort": "updated", "per_page": 10})
    b = RequestSpec(path="/users/x/repos", params={"per_page": 10, "sort": "updated"})
    assert a.cache_key == b.cache_key == "/users/x/repos?per_page=10&sort=updated"
    assert RequestSpec(path="/user").cache_key == "/user"


@pytest.mark.asyncio
async def test_success_sends_auth_and_media_type_headers() -> None:
    router = Router(
        {
            "/users/octocat/repos": json_response(
                [{"name": "hello"}],
                headers={
                    "X-RateLimit-Remaining": "4999",
                    "X-RateLimit-Limit": "5000",
                    "X-RateLimit-Reset": "1700003600",
                },
            )
        }
    )
    async with make_backend(router) as backend:
        result = await backend.fetch(
            RequestSpec(path="/users/octocat/repos", params={"per_page": 10})
        )

    assert result.data == [{"name": "hello"}]
    assert result.retry_count == 0
    assert result.rate_limit is not None
    assert result.rate_limit.remaining == 4999
    assert result.rate_limit.reset_at == 1700003600.0

    request = router.calls[0]
    assert request.headers["Authorization"] == "token test-token"
    assert request.headers["Accept"] == "application/vnd.github.v3+json"
    assert request.headers["User-Agent"].startswith("livereadme/")
    assert request.url.params["per_page"] == "10"


@pytest.mark.asyncio
async def test_not_found_is_not_retried() -> None:
    router = Router({"/repos/x/missing/languages": json_response({"message": "Not Found"}, 404)})
    sleep = RecordingSleep()

    async with make_backend(router, sleep=sleep) as backend:
        with pytest.raises(NotFoundError) as excinfo:
            await backend.fetch(RequestSpec(path="/repos/x/missing/languages"))

    assert excinfo.value.classification is FailureKind.NOT_FOUND
    assert len(router.calls) == 1
    assert sleep.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,headers",
    [
        (403, {"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1700000600"}),
        (429, {}),
        (403, {"Retry-After": "30"}),
    ],
)
async def test_rate_limit_responses_fail_fast(status: int, headers: dict[str, str]) -> None:
    router = Router({"/user": json_response({"message": "API rate limit exceeded"}, status, headers)})
    sleep = RecordingSleep()

    async with make_backend(router, sleep=sleep) as backend:
        with pytest.raises(RateLimitedError) as excinfo:
            await backend.fetch(RequestSpec(path="/user"))

    assert excinfo.value.classification is FailureKind.RATE_LIMITED
    assert excinfo.value.status_code == status
    assert len(router.calls) == 1
    assert sleep.calls == []


@pytest.mark.asyncio
async def test_rate_limit_error_exposes_reset_time() -> None:
    router = Router(
        {
            "/user": json_response(
                {"message": "API rate limit exceeded"},
                403,
                {"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1700000600"},
            )
        }
    )
    async with make_backend(router) as backend:
        with pytest.raises(RateLimitedError) as excinfo:
            await backend.fetch(RequestSpec(path="/user"))

    assert excinfo.value.reset_at == 1700000600.0


@pytest.mark.asyncio
async def test_forbidden_without_quota_signal_is_unknown() -> None:
    router = Router(
        {"/user": json_response({"message": "Resource not accessible"}, 403, {"X-RateLimit-Remaining": "4000"})}
    )
    async with make_backend(router) as backend:
        with pytest.raises(UnknownFetchError) as excinfo:
            await backend.fetch(RequestSpec(path="/user"))

    assert "Resource not accessible" in str(excinfo.value)
    assert len(router.calls) == 3


@pytest.mark.asyncio
async def test_server_error_retries_then_succeeds() -> None:
    router = Router(
        {
            "/user": [
                json_response({"message": "boom"}, 502),
                json_response({"message": "boom"}, 503),
                json_response({"login": "octocat"}),
            ]
        }
    )
    sleep = RecordingSleep()

    async with make_backend(router, sleep=sleep) as backend:
        result = await backend.fetch(RequestSpec(path="/user"))

    assert result.data == {"login": "octocat"}
    assert result.retry_count == 2
    assert [a.delay_before_next_ms for a in result.attempts] == [1000, 2000]
    assert sleep.calls == [1.0, 2.0]


@pytest.mark.asyncio
async def test_server_error_exhausts_attempts() -> None:
    router = Router({"/user": json_response({"message": "boom"}, 500)})

    async with make_backend(router) as backend:
        with pytest.raises(ServerError) as excinfo:
            await backend.fetch(RequestSpec(path="/user"))

    assert excinfo.value.attempts == 3
    assert len(router.calls) == 3


@pytest.mark.asyncio
async def test_timeout_is_classified_and_retried() -> None:
    router = Router({"/user": httpx.ReadTimeout("timed out")})

    async with make_backend(router) as backend:
        with pytest.raises(FetchTimeout) as excinfo:
            await backend.fetch(RequestSpec(path="/user"))

    assert excinfo.value.classification is FailureKind.TIMEOUT
    assert len(router.calls) == 3


@pytest.mark.asyncio
async def test_invalid_json_is_unknown() -> None:
    router = Router({"/user": httpx.Response(200, text="<html>")})

    async with make_backend(router) as backend:
        with pytest.raises(UnknownFetchError):
            await backend.fetch(RequestSpec(path="/user"))


@pytest.mark.asyncio
async def test_connection_error_is_unknown() -> None:
    router = Router({"/user": httpx.ConnectError("refused")})

    async with make_backend(router) as backend:
        with pytest.raises(UnknownFetchError) as excinfo:
            await backend.fetch(RequestSpec(path="/user"))

    assert excinfo.value.classification is FailureKind.UNKNOWN
