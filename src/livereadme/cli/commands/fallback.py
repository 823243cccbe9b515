"""
Fallback command - write the static profile without touching the network.
"""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

import typer
from rich.console import Console

from livereadme.core.config import DEFAULT_USERNAME
from livereadme.core.config.loader import USERNAME_ENV
from livereadme.core.output import write_atomic
from livereadme.core.render import render_fallback

from . import err_console, load_config_or_exit

console = Console()

DEFAULT_ERROR_MESSAGE = "Unknown error occurred"


def fallback(
    message: str = typer.Option(
        DEFAULT_ERROR_MESSAGE,
        "--message",
        "-m",
        help="Error detail shown in the status block",
    ),
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
        help="GitHub account shown on the page",
    ),
) -> None:
    """Write the static fallback README (no token or network needed)."""
    config = load_config_or_exit(config_path)
    username = username or os.environ.get(USERNAME_ENV) or DEFAULT_USERNAME
    output_path = output or config.output.path

    now = datetime.now(ZoneInfo(config.profile.timezone))
    content = render_fallback(username, message, now, config.profile)

    try:
        path = write_atomic(output_path, content)
    except OSError as e:
        err_console.print(f"[red]Failed to write {output_path}:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Fallback README written to {path}")
