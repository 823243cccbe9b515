"""
livereadme CLI - Main entry point.

A one-shot generator for a terminal-styled GitHub profile README,
with a pre-flight health check and a static fallback mode.
"""

from __future__ import annotations

from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.traceback import install as install_rich_traceback

from livereadme import __app_name__, __version__

# Load environment variables from .env (if present)
load_dotenv()

install_rich_traceback(show_locals=False, width=120)

console = Console()

app = typer.Typer(
    name=__app_name__,
    help="Terminal-styled GitHub profile README generator",
    rich_markup_mode="rich",
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]{__app_name__}[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """livereadme - Live GitHub profile README generator."""
    pass


# =============================================================================
# Register commands
# =============================================================================

from .commands import fallback, generate, health  # noqa: E402

app.command("generate")(generate.generate)
app.command("health")(health.health)
app.command("fallback")(fallback.fallback)


# =============================================================================
# Entry Point
# =============================================================================


def run() -> None:
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    run()
