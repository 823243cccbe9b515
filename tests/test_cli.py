from datetime import datetime, timezone

import pytest
from typer.testing import CliRunner

from livereadme import __version__
from livereadme.cli.commands import generate as generate_cmd
from livereadme.cli.commands import health as health_cmd
from livereadme.cli.main import app
from livereadme.core.health import HealthCheckResult, HealthReport
from livereadme.core.orchestrator.runner import LanguageShare, ProfileData

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GITHUB_USERNAME", raising=False)
    return tmp_path


def profile_data() -> ProfileData:
    return ProfileData(
        username="octocat",
        last_commit="5 minutes ago",
        languages=[LanguageShare(name="Python", bytes=10, percent=100.0)],
        commit_hash="abcdef1 - Initial commit",
        generated_at=datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc),
    )


def test_version() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_generate_without_token_fails_before_any_fetch(isolated, monkeypatch) -> None:
    def unexpected(*_args, **_kwargs):
        raise AssertionError("collection must not start without a token")

    monkeypatch.setattr(generate_cmd, "collect_profile_data", unexpected)

    result = runner.invoke(app, ["generate"])

    assert result.exit_code == 1
    assert not (isolated / "README.md").exists()


def test_generate_writes_profile(isolated, monkeypatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "test-token")
    seen = {}

    def fake_collect(config, credentials):
        seen["username"] = credentials.username
        return profile_data()

    monkeypatch.setattr(generate_cmd, "collect_profile_data", fake_collect)

    result = runner.invoke(app, ["generate", "--username", "octocat", "--output", "out/README.md"])

    assert result.exit_code == 0, result.output
    assert seen["username"] == "octocat"
    page = (isolated / "out" / "README.md").read_text(encoding="utf-8")
    assert page.startswith("# octocat@github ~/profile LIVE")
    assert "abcdef1 - Initial commit" in page


def test_generate_falls_back_on_unexpected_failure(isolated, monkeypatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "test-token")

    def broken(config, credentials):
        raise RuntimeError("event loop exploded")

    monkeypatch.setattr(generate_cmd, "collect_profile_data", broken)

    result = runner.invoke(app, ["generate", "--username", "octocat"])

    assert result.exit_code == 0
    page = (isolated / "README.md").read_text(encoding="utf-8")
    assert "Fallback%20Mode" in page
    assert "> error-details: event loop exploded" in page


def test_generate_with_invalid_config_exits(isolated) -> None:
    (isolated / "bad.yaml").write_text("throttle:\n  max_concurrency: 99\n", encoding="utf-8")

    result = runner.invoke(app, ["generate", "--config", "bad.yaml"])

    assert result.exit_code == 1


def test_fallback_needs_no_token(isolated) -> None:
    result = runner.invoke(app, ["fallback", "--message", "API down", "--username", "octocat"])

    assert result.exit_code == 0
    page = (isolated / "README.md").read_text(encoding="utf-8")
    assert page.startswith("# octocat@github ~/profile")
    assert "> error-details: API down" in page


def test_health_failure_exits_non_zero_and_writes_report(isolated, monkeypatch) -> None:
    report = HealthReport(
        checks=[
            HealthCheckResult(name="Environment Variables", success=False, message="missing"),
            HealthCheckResult(name="Network Connectivity", success=True, message="2/2"),
        ],
        started_at=datetime(2024, 1, 10, tzinfo=timezone.utc),
    )
    monkeypatch.setattr(health_cmd, "run_checks", lambda config, output_path: report)

    result = runner.invoke(app, ["health", "--report", "health.json"])

    assert result.exit_code == 1
    assert (isolated / "health.json").exists()


def test_health_success(isolated, monkeypatch) -> None:
    report = HealthReport(
        checks=[HealthCheckResult(name="Network Connectivity", success=True, message="2/2")],
        started_at=datetime(2024, 1, 10, tzinfo=timezone.utc),
    )
    monkeypatch.setattr(health_cmd, "run_checks", lambda config, output_path: report)

    result = runner.invoke(app, ["health"])

    assert result.exit_code == 0
    assert (isolated / ".health-report.json").exists()
