"""CLI command modules."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from livereadme.core.config import AppConfig, ConfigError, load_app_config
from livereadme.core.logging import setup_logging

err_console = Console(stderr=True)


def load_config_or_exit(config_path: Path | None) -> AppConfig:
    """Load app configuration, exiting with status 1 when it is invalid."""
    try:
        config = load_app_config(config_path)
    except ConfigError as e:
        err_console.print(f"[red]Error loading configuration:[/red] {e}")
        if e.details:
            err_console.print(f"[dim]{e.details}[/dim]")
        raise typer.Exit(1)

    setup_logging(
        level=config.logging.level,
        log_file=config.logging.file,
        json_format=config.logging.json_format,
        rich_console=config.logging.rich_console,
    )
    return config


__all__ = [
    "err_console",
    "load_config_or_exit",
]
