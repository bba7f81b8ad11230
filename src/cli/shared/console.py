"""Shared utilities for CLI commands.

This module provides console output, error handling and logging setup
used across command modules.
"""

import sys
from collections.abc import Callable
from functools import wraps
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console, ConsoleRenderable
from rich.markup import escape
from rich.panel import Panel
from rich.status import Status

from src.gras.errors import DeploymentError


class CLIConsole:
    """Rich console wrapper for consistent CLI output."""

    def __init__(self, console: Console | None = None) -> None:
        """Initialize the CLI console.

        Args:
            console: Underlying Rich console (a new one by default)
        """
        self.console = console or Console()

    def print(self, msg: ConsoleRenderable | str | None = None) -> None:
        self.console.print(msg)

    def status(self, status: str) -> Status:
        return self.console.status(status)

    def info(self, msg: str) -> None:
        self.console.print(f"[cyan]ℹ[/cyan]  {msg}")

    def ok(self, msg: str) -> None:
        self.console.print(f"[green]✅[/green] {msg}")

    def error(self, msg: str) -> None:
        self.console.print(f"[red]❌[/red] {msg}")

    def warn(self, msg: str) -> None:
        self.console.print(f"[yellow]⚠️[/yellow]  {msg}")

    def stream(self, line: str) -> None:
        """Print a line of subprocess output, dimmed."""
        self.console.print(f"[dim]{escape(line)}[/dim]")

    def handle_error(
        self, message: str, details: str | None = None, exit_code: int = 1
    ) -> None:
        """Handle an error by printing a message and exiting.

        Args:
            message: Error message to display
            details: Optional additional details
            exit_code: Exit code to use
        """
        self.error(f"\n[bold red]{escape(message)}[/bold red]\n")
        if details:
            self.console.print(Panel(escape(details), title="Details", border_style="red"))
        raise typer.Exit(exit_code)

    def print_header(self, title: str, style: str = "blue") -> None:
        """Print a styled header panel.

        Args:
            title: Header title text
            style: Border style color
        """
        self.console.print(
            Panel.fit(
                f"[bold {style}]{title}[/bold {style}]",
                border_style=style,
            )
        )


def configure_logging(log_file: Path | str, verbose: bool = False) -> None:
    """Route loguru output to stderr and to the deployment log file.

    Args:
        log_file: File receiving the full DEBUG log
        verbose: Show DEBUG messages on stderr instead of warnings only
    """
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")
    try:
        logger.add(str(log_file), level="DEBUG", enqueue=False)
    except OSError as e:
        logger.warning(f"Cannot write log file {log_file}: {e}")


def with_error_handling(func: Callable[..., None]) -> Callable[..., None]:
    """Decorator to wrap command functions with standard error handling.

    Catches common exceptions and formats them consistently.

    Args:
        func: The command function to wrap

    Returns:
        Wrapped function with error handling
    """

    @wraps(func)
    def wrapper(*args: object, **kwargs: object) -> None:
        try:
            func(*args, **kwargs)
        except DeploymentError as e:
            logger.debug(f"{type(e).__name__}: {e.message}")
            console.handle_error(e.message, e.details)
        except KeyboardInterrupt:
            console.print("\n[dim]Operation cancelled by user.[/dim]")
            raise typer.Exit(130) from None

    return wrapper


# Shared console instance for consistent output
console = CLIConsole()
