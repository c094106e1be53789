"""Tests for the CLI commands.

Uses Typer's CliRunner against log files in a temporary directory.
Settings are pointed there through RUNTIME_DIAGNOSTICS_* variables.
"""

import re
from pathlib import Path

import pytest
from typer.testing import CliRunner

from runtime_diagnostics.cli.main import app
from runtime_diagnostics.reporting.report import REPORT_FILENAME

runner = CliRunner()


def strip_ansi(text: str) -> str:
    """Remove ANSI escape codes from text.

    This is needed because Rich/Typer output may contain color codes
    that interfere with string matching in tests.
    """
    ansi_pattern = re.compile(r"\x1b\[[0-9;]*m")
    return ansi_pattern.sub("", text)


@pytest.fixture
def cli_env(temp_dir: Path, log_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the CLI at the temporary log and report locations."""
    monkeypatch.setenv("RUNTIME_DIAGNOSTICS_LOG_PATH", str(log_path))
    monkeypatch.setenv("RUNTIME_DIAGNOSTICS_REPORT_DIR", str(temp_dir / "reports"))
    monkeypatch.setenv("RUNTIME_DIAGNOSTICS_APP_NAME", "CliApp")
    return log_path


@pytest.fixture
def existing_log(cli_env: Path) -> Path:
    """A log file with two sessions."""
    cli_env.parent.mkdir(parents=True, exist_ok=True)
    cli_env.write_text(
        "2024-01-15 12:00:00\nVersion: 1.0\n\n"
        "2024-01-15 12:00:01 | first | app.py:main:L1\n"
        "\n\n---\n\n"
        "2024-01-16 08:00:00\nVersion: 1.1\n\n"
        "2024-01-16 08:00:01 | second | app.py:main:L1\n"
        "2024-01-16 08:00:02 | third | app.py:main:L2\n"
    )
    return cli_env


class TestCLIHelp:
    """Test CLI help output."""

    def test_main_help(self) -> None:
        """Test that --help shows all commands."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        output = strip_ansi(result.stdout)
        assert "report" in output
        assert "show" in output
        assert "clear" in output
        assert "config" in output

    def test_report_help(self) -> None:
        result = runner.invoke(app, ["report", "--help"])
        assert result.exit_code == 0
        output = strip_ansi(result.stdout)
        assert "--log-file" in output
        assert "--output" in output
        assert "--preferences" in output


class TestReportCommand:
    """Tests for compiling reports from the CLI."""

    def test_missing_log(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["report"])
        assert result.exit_code == 1
        assert "No diagnostics log found" in strip_ansi(result.stdout)

    def test_report_saved(self, existing_log: Path, temp_dir: Path) -> None:
        output_dir = temp_dir / "out"
        result = runner.invoke(app, ["report", "--output", str(output_dir)])
        assert result.exit_code == 0, result.stdout

        html = (output_dir / REPORT_FILENAME).read_text(encoding="utf-8")
        assert "<title>CliApp - Diagnostics Report</title>" in html
        assert "| second |" in html
        assert "<hr>" in html
        # Reading a log must not start a new session in it
        assert existing_log.read_text().count("---") == 1

    def test_report_default_directory(self, existing_log: Path, temp_dir: Path) -> None:
        result = runner.invoke(app, ["report"])
        assert result.exit_code == 0, result.stdout
        assert (temp_dir / "reports" / REPORT_FILENAME).exists()

    def test_report_with_preferences(self, existing_log: Path, temp_dir: Path) -> None:
        prefs = temp_dir / "prefs.yaml"
        prefs.write_text("theme: solarized\n")
        output_dir = temp_dir / "out"

        result = runner.invoke(
            app, ["report", "-o", str(output_dir), "--preferences", str(prefs)]
        )
        assert result.exit_code == 0, result.stdout
        assert "solarized" in (output_dir / REPORT_FILENAME).read_text(encoding="utf-8")

    def test_explicit_log_file(self, cli_env: Path, temp_dir: Path) -> None:
        other = temp_dir / "other.log"
        other.write_text("2024-01-15 12:00:00 | elsewhere | x.py:f:L1\n")
        output_dir = temp_dir / "out"

        result = runner.invoke(app, ["report", "-l", str(other), "-o", str(output_dir)])
        assert result.exit_code == 0, result.stdout
        assert "elsewhere" in (output_dir / REPORT_FILENAME).read_text(encoding="utf-8")


class TestShowCommand:
    """Tests for printing the log tail."""

    def test_tail(self, existing_log: Path) -> None:
        result = runner.invoke(app, ["show", "--lines", "2"])
        assert result.exit_code == 0
        lines = strip_ansi(result.stdout).splitlines()
        assert lines == [
            "2024-01-16 08:00:01 | second | app.py:main:L1",
            "2024-01-16 08:00:02 | third | app.py:main:L2",
        ]

    def test_missing_log(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["show"])
        assert result.exit_code == 1


class TestClearCommand:
    """Tests for deleting the log."""

    def test_clear_with_yes(self, existing_log: Path) -> None:
        result = runner.invoke(app, ["clear", "--yes"])
        assert result.exit_code == 0
        assert not existing_log.exists()

    def test_clear_declined(self, existing_log: Path) -> None:
        result = runner.invoke(app, ["clear"], input="n\n")
        assert result.exit_code == 1
        assert existing_log.exists()

    def test_clear_missing(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["clear", "--yes"])
        assert result.exit_code == 0
        assert "No diagnostics log found" in strip_ansi(result.stdout)


class TestConfigCommand:
    """Tests for printing settings."""

    def test_table(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        output = strip_ansi(result.stdout)
        assert "maximum_size" in output
        assert "CliApp" in output

    def test_yaml(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["config", "--yaml"])
        assert result.exit_code == 0
        assert "app_name: CliApp" in strip_ansi(result.stdout)

    def test_config_file(self, temp_dir: Path) -> None:
        config_file = temp_dir / "custom.yaml"
        config_file.write_text("app_name: FromFile\n")
        result = runner.invoke(app, ["--config", str(config_file), "config", "--yaml"])
        assert result.exit_code == 0
        assert "app_name: FromFile" in strip_ansi(result.stdout)
