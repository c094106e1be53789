"""Main CLI application for runtime diagnostics.

Usage:
    runtime-diagnostics report [OPTIONS]   Compile an HTML report from the log
    runtime-diagnostics show [OPTIONS]     Print the tail of the log
    runtime-diagnostics clear [OPTIONS]    Delete the log file
    runtime-diagnostics config             Print the effective settings
    runtime-diagnostics --help             Show help
"""

from pathlib import Path

import typer

from runtime_diagnostics.cli import commands
from runtime_diagnostics.cli.utils import console
from runtime_diagnostics.config import get_settings, reload_settings
from runtime_diagnostics.core.logging import configure_logging

app = typer.Typer(
    name="runtime-diagnostics",
    help="Inspect diagnostics logs and compile HTML diagnostics reports.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=False,
)

app.command(name="report")(commands.report)
app.command(name="show")(commands.show)
app.command(name="clear")(commands.clear)
app.command(name="config")(commands.config)


@app.callback(invoke_without_command=True)  # type: ignore[untyped-decorator]
def main(
    ctx: typer.Context,
    config_file: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        exists=True,
        dir_okay=False,
        help="YAML settings file (defaults to ./diagnostics.yaml).",
    ),
) -> None:
    """Runtime diagnostics CLI.

    Use 'runtime-diagnostics COMMAND --help' for more information on a command.
    """
    settings = reload_settings(config_file) if config_file else get_settings()
    configure_logging(log_format=settings.log_format, log_level=settings.log_level)

    if ctx.invoked_subcommand is None:
        console.print()
        console.print("[bold blue]Runtime Diagnostics[/bold blue]")
        console.print()
        console.print("Use [green]runtime-diagnostics --help[/green] to see available commands.")
        console.print()
        raise typer.Exit(0)


if __name__ == "__main__":
    app()
