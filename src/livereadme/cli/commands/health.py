"""
Health command - pre-flight checks before a generation run.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from livereadme.core.backends.github_backend import GitHubBackend
from livereadme.core.config import AppConfig
from livereadme.core.config.loader import TOKEN_ENV
from livereadme.core.health import HealthReport, run_health_check

from . import err_console, load_config_or_exit

console = Console()


async def _run_checks(config: AppConfig, output_path: Path) -> HealthReport:
    token = (os.environ.get(TOKEN_ENV) or "").strip()
    backend = GitHubBackend.from_config(config, token) if token else None
    try:
        return await run_health_check(
            backend,
            output_path,
            rate_limit_threshold=config.throttle.low_quota_threshold,
        )
    finally:
        if backend is not None:
            await backend.close()


def run_checks(config: AppConfig, output_path: Path) -> HealthReport:
    return asyncio.run(_run_checks(config, output_path))


def _print_report(report: HealthReport) -> None:
    table = Table(title="Health Check")
    table.add_column("Check", style="cyan")
    table.add_column("Status")
    table.add_column("Message")

    for check in report.checks:
        status = "[green]PASS[/green]" if check.success else "[red]FAIL[/red]"
        table.add_row(check.name, status, check.message)

    console.print(table)
    console.print(
        f"\n[bold]{report.passed}/{len(report.checks)}[/bold] checks passed "
        f"({report.pass_rate}%) in {report.duration_ms}ms"
    )

    recommendations = report.recommendations()
    if recommendations:
        console.print("\n[yellow]Recommendations:[/yellow]")
        for advice in recommendations:
            console.print(f"  • {advice}")


def health(
    report_path: Optional[Path] = typer.Option(
        None,
        "--report",
        "-r",
        help="JSON report location (default: output.health_report from config)",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to app.yaml",
    ),
) -> None:
    """Check token, quota, connectivity and write access."""
    config = load_config_or_exit(config_path)

    report = run_checks(config, config.output.path)
    _print_report(report)

    target = report_path or config.output.health_report
    try:
        report.write(target)
    except OSError as e:
        err_console.print(f"[red]Failed to write report {target}:[/red] {e}")
        raise typer.Exit(1)
    console.print(f"[dim]Report saved to {target}[/dim]")

    if not report.overall:
        raise typer.Exit(1)
