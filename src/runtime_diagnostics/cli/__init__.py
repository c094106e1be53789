"""Command-line interface for runtime diagnostics.

Example usage:
    runtime-diagnostics report --output ./reports
    runtime-diagnostics show --lines 100
"""

from runtime_diagnostics.cli.main import app

__all__ = ["app"]
