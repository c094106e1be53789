"""Log and report commands: report, show, clear, config.

These commands work on a diagnostics log written earlier by an application.
They never start a new session in the log they read.
"""

from pathlib import Path

import typer
import yaml  # type: ignore[import-untyped]
from rich.table import Table

from runtime_diagnostics.cli.utils import (
    console,
    exit_with_error,
    open_existing_log,
    print_info,
    print_success,
)
from runtime_diagnostics.config import get_settings
from runtime_diagnostics.core.exceptions import DiagnosticsError
from runtime_diagnostics.reporting.compiler import DiagnosticsReporter
from runtime_diagnostics.reporting.reporters import (
    AppSystemMetadataReporter,
    GeneralInfoReporter,
    LogsReporter,
    Reporter,
    UserDefaultsReporter,
)

app = typer.Typer(help="Diagnostics log commands")


@app.command()
def report(
    log_file: Path | None = typer.Option(
        None, "--log-file", "-l", help="Log file to report on (overrides config)."
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Directory to save the report in (overrides config)."
    ),
    preferences: Path | None = typer.Option(
        None,
        "--preferences",
        "-p",
        exists=True,
        dir_okay=False,
        help="YAML or JSON file shown in the UserDefaults chapter.",
    ),
) -> None:
    """Compile an HTML diagnostics report from an existing log.

    Examples:
        runtime-diagnostics report
        runtime-diagnostics report -l app.log -o ./out
        runtime-diagnostics report --preferences prefs.yaml
    """
    settings = get_settings()
    store = open_existing_log(settings, log_file)

    try:
        log_dir = store.path.parent if store.path is not None else Path(".")
        reporters: list[Reporter] = [
            GeneralInfoReporter(settings.app_name, settings.app_version),
            AppSystemMetadataReporter(
                settings.app_name, settings.app_version, disk_path=log_dir
            ),
            LogsReporter(store),
        ]
        if preferences is not None:
            reporters.append(UserDefaultsReporter.from_file(preferences))
        else:
            reporters.append(UserDefaultsReporter())

        compiled = DiagnosticsReporter(
            reporters, title=settings.resolved_report_title
        ).create()
        saved = compiled.save_to(output or settings.report_dir)
    except (DiagnosticsError, OSError, yaml.YAMLError) as e:
        exit_with_error(f"Could not create the report: {e}")
    finally:
        store.close()

    print_success(f"Report saved to {saved}")


@app.command()
def show(
    lines: int = typer.Option(
        50, "--lines", "-n", min=1, help="Number of lines from the end of the log."
    ),
    log_file: Path | None = typer.Option(
        None, "--log-file", "-l", help="Log file to show (overrides config)."
    ),
) -> None:
    """Print the tail of the diagnostics log."""
    settings = get_settings()
    store = open_existing_log(settings, log_file)
    try:
        data = store.read()
    finally:
        store.close()

    if data is None:
        exit_with_error(f"Could not read {store.path}")

    tail = data.decode("utf-8", errors="replace").splitlines()[-lines:]
    for line in tail:
        console.print(line, markup=False, highlight=False, soft_wrap=True)


@app.command()
def clear(
    log_file: Path | None = typer.Option(
        None, "--log-file", "-l", help="Log file to delete (overrides config)."
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Delete the diagnostics log file."""
    settings = get_settings()
    path = log_file or settings.log_path
    if not path.exists():
        print_info(f"No diagnostics log found at {path}")
        return

    if not yes and not typer.confirm(f"Delete {path}?"):
        raise typer.Exit(1)

    store = open_existing_log(settings, path)
    try:
        store.delete()
    finally:
        store.close()
    print_success(f"Deleted {path}")


@app.command()
def config(
    as_yaml: bool = typer.Option(False, "--yaml", help="Output as YAML instead of a table."),
) -> None:
    """Print the effective settings.

    Values come from diagnostics.yaml, .env and RUNTIME_DIAGNOSTICS_*
    environment variables, in increasing priority.
    """
    values = get_settings().to_yaml_dict()

    if as_yaml:
        console.print(yaml.safe_dump(values, sort_keys=False), markup=False, highlight=False)
        return

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Setting", style="dim")
    table.add_column("Value", style="green")
    for name, value in values.items():
        table.add_row(name, str(value))

    console.print()
    console.print(table)
    console.print()
