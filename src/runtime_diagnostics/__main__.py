"""Entry point for running runtime diagnostics as a module.

Usage:
    python -m runtime_diagnostics report      # Compile a report
    python -m runtime_diagnostics show        # Show the log tail
    python -m runtime_diagnostics --help      # Show all commands
"""


def main() -> None:
    """Main entry point - delegates to Typer CLI app."""
    from runtime_diagnostics.cli.main import app

    app()


if __name__ == "__main__":
    main()
