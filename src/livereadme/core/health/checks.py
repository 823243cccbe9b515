"""
Pre-flight health checks.

Verifies the environment, output location, GitHub connectivity and
remaining quota before a generation run, and produces a JSON report.
"""

from __future__ import annotations

import asyncio
import math
import os
import tempfile
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import httpx
import orjson

from livereadme.core.backends.base import FetchError, RequestSpec
from livereadme.core.backends.github_backend import GitHubBackend
from livereadme.core.config.loader import TOKEN_ENV, USERNAME_ENV
from livereadme.core.logging import get_logger

logger = get_logger("health")


MIN_HEALTHY_REMAINING = 50
CONNECTIVITY_SUCCESS_RATIO = 0.8
CONNECTIVITY_TIMEOUT = 5.0
CONNECTIVITY_URLS = (
    "https://api.github.com",
    "https://github.com",
)

RECOMMENDATIONS = {
    "GitHub API Connection": "Verify GITHUB_TOKEN is valid and has required permissions",
    "Rate Limit Status": "Wait for rate limit reset or use a different token",
    "Environment Variables": "Set missing environment variables in repository secrets",
    "File System Permissions": "Check repository permissions and workflow token scope",
    "Network Connectivity": "Check network connectivity and firewall settings",
}


@dataclass
class HealthCheckResult:
    """Outcome of a single check."""

    name: str
    success: bool
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).strftime("%H:%M:%S")
    )


@dataclass
class HealthReport:
    """Aggregate of all checks."""

    checks: list[HealthCheckResult]
    started_at: datetime
    duration_ms: int = 0

    @property
    def overall(self) -> bool:
        return all(c.success for c in self.checks)

    @property
    def passed(self) -> int:
        return sum(1 for c in self.checks if c.success)

    @property
    def pass_rate(self) -> int:
        if not self.checks:
            return 0
        return round(self.passed / len(self.checks) * 100)

    @property
    def failures(self) -> list[HealthCheckResult]:
        return [c for c in self.checks if not c.success]

    def recommendations(self) -> list[str]:
        """One recommendation per distinct failed check, in check order."""
        seen: list[str] = []
        for check in self.failures:
            advice = RECOMMENDATIONS.get(check.name)
            if advice and advice not in seen:
                seen.append(advice)
        return seen

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.started_at.isoformat(),
            "overall": self.overall,
            "pass_rate": self.pass_rate,
            "duration_ms": self.duration_ms,
            "summary": {
                "passed": self.passed,
                "total": len(self.checks),
                "failed": len(self.checks) - self.passed,
            },
            "checks": [asdict(c) for c in self.checks],
            "recommendations": self.recommendations(),
        }

    def write(self, path: Path | str) -> Path:
        """Write the report as indented JSON."""
        path = Path(path)
        path.write_bytes(orjson.dumps(self.to_dict(), option=orjson.OPT_INDENT_2))
        return path


def _result(name: str, success: bool, message: str, **details: Any) -> HealthCheckResult:
    result = HealthCheckResult(name=name, success=success, message=message, details=details)
    if success:
        logger.info("%s: %s", name, message)
    else:
        logger.warning("%s: %s", name, message)
    return result


# =============================================================================
# Checks
# =============================================================================


async def check_environment(env: Mapping[str, str] | None = None) -> HealthCheckResult:
    env = os.environ if env is None else env
    required = [TOKEN_ENV]
    optional = [USERNAME_ENV]

    missing = [name for name in required if not env.get(name)]
    present_optional = [name for name in optional if env.get(name)]

    if missing:
        message = f"Missing required variables: {', '.join(missing)}"
    else:
        message = f"All required variables present ({len(present_optional)} optional)"
    return _result(
        "Environment Variables",
        not missing,
        message,
        required=len(required),
        missing=len(missing),
        optional=len(present_optional),
        missing_vars=missing,
    )


async def check_file_permissions(output_path: Path | str) -> HealthCheckResult:
    output_path = Path(output_path)
    try:
        if output_path.exists() and not os.access(output_path, os.W_OK):
            raise PermissionError(f"{output_path} is not writable")
        with tempfile.NamedTemporaryFile(dir=output_path.parent, prefix=".health-check-"):
            pass
    except OSError as e:
        return _result("File System Permissions", False, f"Permission error: {e}")
    return _result("File System Permissions", True, "Read/write permissions verified")


async def check_github_connection(backend: GitHubBackend | None) -> HealthCheckResult:
    name = "GitHub API Connection"
    if backend is None:
        return _result(name, False, "No token configured; skipped")
    try:
        result = await backend.fetch(RequestSpec(path="/user", operation="health"))
    except FetchError as e:
        return _result(
            name,
            False,
            f"Failed to connect: {e}",
            status=e.status_code,
            classification=e.classification.value,
        )
    user = result.data if isinstance(result.data, dict) else {}
    return _result(
        name,
        True,
        f"Connected as {user.get('login', 'unknown')}",
        login=user.get("login"),
        id=user.get("id"),
        type=user.get("type"),
    )


async def check_rate_limit(
    backend: GitHubBackend | None,
    threshold: int = MIN_HEALTHY_REMAINING,
) -> HealthCheckResult:
    name = "Rate Limit Status"
    if backend is None:
        return _result(name, False, "No token configured; skipped")
    try:
        result = await backend.fetch(RequestSpec(path="/rate_limit", operation="health"))
    except FetchError as e:
        return _result(name, False, f"Failed to check rate limit: {e}")

    rate = (result.data or {}).get("rate", {}) if isinstance(result.data, dict) else {}
    remaining = int(rate.get("remaining") or 0)
    limit = int(rate.get("limit") or 0)
    reset = int(rate.get("reset") or 0)
    minutes_to_reset = max(0, math.ceil((reset - time.time()) / 60))

    healthy = remaining > threshold
    if healthy:
        message = f"{remaining}/{limit} requests remaining"
    else:
        message = f"Low rate limit: {remaining}/{limit} (resets in {minutes_to_reset}m)"
    return _result(
        name,
        healthy,
        message,
        remaining=remaining,
        limit=limit,
        reset_time=datetime.fromtimestamp(reset, timezone.utc).isoformat(),
        minutes_to_reset=minutes_to_reset,
    )


async def check_network_connectivity(
    urls: tuple[str, ...] = CONNECTIVITY_URLS,
    transport: httpx.AsyncBaseTransport | None = None,
) -> HealthCheckResult:
    async with httpx.AsyncClient(
        timeout=CONNECTIVITY_TIMEOUT, transport=transport, follow_redirects=True
    ) as client:

        async def probe(url: str) -> dict[str, Any]:
            try:
                await client.get(url)
            except httpx.HTTPError as e:
                return {"url": url, "success": False, "error": str(e)}
            return {"url": url, "success": True}

        results = await asyncio.gather(*(probe(url) for url in urls))

    successful = sum(1 for r in results if r["success"])
    total = len(urls)
    healthy = total > 0 and successful >= math.ceil(total * CONNECTIVITY_SUCCESS_RATIO)
    return _result(
        "Network Connectivity",
        healthy,
        f"{successful}/{total} endpoints reachable",
        successful=successful,
        total=total,
        success_rate=round(successful / total * 100) if total else 0,
        results=list(results),
    )


async def run_health_check(
    backend: GitHubBackend | None,
    output_path: Path | str,
    env: Mapping[str, str] | None = None,
    connectivity_transport: httpx.AsyncBaseTransport | None = None,
    rate_limit_threshold: int = MIN_HEALTHY_REMAINING,
) -> HealthReport:
    """Run every check concurrently.

    Args:
        backend: GitHub backend, or None when no token is configured
        output_path: Document the generator will write
        env: Environment mapping (default: os.environ)
        connectivity_transport: Optional transport for connectivity probes
        rate_limit_threshold: Remaining quota considered healthy

    Returns:
        HealthReport with every check result
    """
    started = datetime.now(timezone.utc)
    start = time.perf_counter()

    checks = await asyncio.gather(
        check_environment(env),
        check_file_permissions(output_path),
        check_network_connectivity(transport=connectivity_transport),
        check_github_connection(backend),
        check_rate_limit(backend, rate_limit_threshold),
    )

    return HealthReport(
        checks=list(checks),
        started_at=started,
        duration_ms=int((time.perf_counter() - start) * 1000),
    )
