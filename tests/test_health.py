import json
import time

import httpx
import pytest

from conftest import Router, json_response, make_backend
from livereadme.core.health import run_health_check
from livereadme.core.health.checks import (
    check_environment,
    check_file_permissions,
    check_github_connection,
    check_network_connectivity,
    check_rate_limit,
)


def rate_limit_body(remaining: int, limit: int = 5000) -> dict:
    return {"rate": {"remaining": remaining, "limit": limit, "reset": int(time.time()) + 600}}


def healthy_routes() -> dict:
    return {
        "/user": json_response({"login": "octocat", "id": 1, "type": "User"}),
        "/rate_limit": json_response(rate_limit_body(4900)),
    }


def reachable(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, text="ok")


@pytest.mark.asyncio
async def test_environment_check() -> None:
    ok = await check_environment({"GITHUB_TOKEN": "t", "GITHUB_USERNAME": "octocat"})
    assert ok.success
    assert ok.details["optional"] == 1

    missing = await check_environment({})
    assert not missing.success
    assert missing.details["missing_vars"] == ["GITHUB_TOKEN"]


@pytest.mark.asyncio
async def test_file_permissions_check(tmp_path) -> None:
    result = await check_file_permissions(tmp_path / "README.md")
    assert result.success

    missing_dir = await check_file_permissions(tmp_path / "nope" / "README.md")
    assert not missing_dir.success


@pytest.mark.asyncio
async def test_github_connection_check() -> None:
    async with make_backend(Router(healthy_routes())) as backend:
        result = await check_github_connection(backend)

    assert result.success
    assert result.message == "Connected as octocat"


@pytest.mark.asyncio
async def test_github_connection_check_reports_classification() -> None:
    router = Router({"/user": json_response({"message": "Bad credentials"}, 401)})
    async with make_backend(router) as backend:
        result = await check_github_connection(backend)

    assert not result.success
    assert result.details["classification"] == "unknown"
    assert result.details["status"] == 401


@pytest.mark.asyncio
async def test_checks_without_token_fail() -> None:
    assert not (await check_github_connection(None)).success
    assert not (await check_rate_limit(None)).success


@pytest.mark.asyncio
async def test_low_rate_limit_is_unhealthy() -> None:
    router = Router({"/rate_limit": json_response(rate_limit_body(10))})
    async with make_backend(router) as backend:
        result = await check_rate_limit(backend, threshold=50)

    assert not result.success
    assert result.details["remaining"] == 10
    assert result.message.startswith("Low rate limit: 10/5000")


@pytest.mark.asyncio
async def test_network_connectivity_ratio() -> None:
    def half_down(request: httpx.Request) -> httpx.Response:
        if request.url.host == "github.com":
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(200)

    up = await check_network_connectivity(transport=httpx.MockTransport(reachable))
    down = await check_network_connectivity(transport=httpx.MockTransport(half_down))

    assert up.success
    assert up.details["successful"] == 2
    assert not down.success
    assert down.details["success_rate"] == 50


@pytest.mark.asyncio
async def test_full_report(tmp_path) -> None:
    async with make_backend(Router(healthy_routes())) as backend:
        report = await run_health_check(
            backend,
            tmp_path / "README.md",
            env={"GITHUB_TOKEN": "t"},
            connectivity_transport=httpx.MockTransport(reachable),
        )

    assert report.overall
    assert report.pass_rate == 100
    assert report.recommendations() == []

    path = report.write(tmp_path / "report.json")
    saved = json.loads(path.read_text(encoding="utf-8"))
    assert saved["summary"] == {"passed": 5, "total": 5, "failed": 0}
    assert [c["name"] for c in saved["checks"]] == [
        "Environment Variables",
        "File System Permissions",
        "Network Connectivity",
        "GitHub API Connection",
        "Rate Limit Status",
    ]


@pytest.mark.asyncio
async def test_failed_report_recommends_fixes(tmp_path) -> None:
    report = await run_health_check(
        None,
        tmp_path / "README.md",
        env={},
        connectivity_transport=httpx.MockTransport(reachable),
    )

    assert not report.overall
    assert report.passed == 2
    assert report.recommendations() == [
        "Set missing environment variables in repository secrets",
        "Verify GITHUB_TOKEN is valid and has required permissions",
        "Wait for rate limit reset or use a different token",
    ]


@pytest.mark.asyncio
async def test_rate_limit_check_tolerates_null_fields() -> None:
    router = Router({"/rate_limit": json_response({"rate": {"remaining": None, "limit": None, "reset": None}})})
    async with make_backend(router) as backend:
        result = await check_rate_limit(backend)

    assert not result.success
    assert result.details["remaining"] == 0
    assert result.details["limit"] == 0
