"""
Generate command - collect live profile data and write the README.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

import typer
from rich.console import Console

from livereadme.core.config import (
    AppConfig,
    ConfigurationMissing,
    Credentials,
    load_credentials,
)
from livereadme.core.logging import get_logger
from livereadme.core.orchestrator.runner import ProfileData, collect_profile
from livereadme.core.output import write_atomic
from livereadme.core.render import render_fallback, render_profile

from . import err_console, load_config_or_exit

console = Console()
logger = get_logger("cli.generate")


def collect_profile_data(config: AppConfig, credentials: Credentials) -> ProfileData:
    """Run the async collection pipeline to completion."""
    return asyncio.run(collect_profile(config, credentials))


def generate(
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Markdown file to write (default: output.path from config)",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to app.yaml",
    ),
    username: Optional[str] = typer.Option(
        None,
        "--username",
        "-u",
        help="GitHub account to profile (default: GITHUB_USERNAME)",
    ),
) -> None:
    """Fetch live GitHub data and regenerate the profile README."""
    config = load_config_or_exit(config_path)

    try:
        credentials = load_credentials(username=username)
    except ConfigurationMissing as e:
        err_console.print(f"[red]Configuration missing:[/red] {e}")
        err_console.print("[dim]Set it in the environment or a .env file[/dim]")
        raise typer.Exit(1)

    output_path = output or config.output.path
    console.print(f"[bold]Generating profile for[/bold] [cyan]{credentials.username}[/cyan]")

    fallback_used = False
    try:
        data = collect_profile_data(config, credentials)
        content = render_profile(data, config.profile)
    except Exception as e:
        logger.exception("Profile generation failed; writing fallback document")
        now = datetime.now(ZoneInfo(config.profile.timezone))
        content = render_fallback(
            credentials.username,
            str(e) or type(e).__name__,
            now,
            config.profile,
        )
        fallback_used = True
        data = None

    try:
        path = write_atomic(output_path, content)
    except OSError as e:
        err_console.print(f"[red]Failed to write {output_path}:[/red] {e}")
        raise typer.Exit(1)

    if fallback_used:
        console.print(f"[yellow]⚠[/yellow] Fallback document written to {path}")
    elif data is not None and data.degraded:
        console.print(
            f"[yellow]⚠[/yellow] {path} written with degraded sources: "
            f"{', '.join(data.degraded_sources)}"
        )
    else:
        console.print(f"[green]✓[/green] {path} updated")
