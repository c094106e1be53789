"""Shared utilities for CLI commands.

Console output helpers and the log store plumbing used by several commands.
"""

from pathlib import Path
from typing import NoReturn

from rich.console import Console

from runtime_diagnostics.config import Settings
from runtime_diagnostics.core.log_store import RollingLogStore

# Shared console instance for consistent output
console = Console()


def print_success(message: str) -> None:
    """Print a success message in green."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message in red."""
    console.print(f"[red]{message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message in yellow."""
    console.print(f"[yellow]{message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message in blue."""
    console.print(f"[blue]{message}[/blue]")


def exit_with_error(message: str, code: int = 1) -> NoReturn:
    """Print an error message and exit with the given code.

    Args:
        message: Error message to display.
        code: Exit code (default 1).
    """
    print_error(message)
    raise SystemExit(code)


def open_existing_log(settings: Settings, log_file: Path | None = None) -> RollingLogStore:
    """Open an existing log file for reading, without starting a session.

    Args:
        settings: Effective settings, used for the store limits.
        log_file: Explicit log file; defaults to ``settings.log_path``.

    Returns:
        A ready store. The caller closes it.
    """
    path = log_file or settings.log_path
    if not path.exists():
        exit_with_error(f"No diagnostics log found at {path}")

    store = RollingLogStore(
        maximum_size=settings.maximum_size,
        trim_size=settings.trim_size,
        minimum_free_disk_space=settings.minimum_free_disk_space,
        file_creation_limit=settings.file_creation_limit,
        app_version=settings.app_version,
    )
    store.setup(path, start_session=False)
    return store
