"""runtime_diagnostics - Rolling diagnostics log and shareable diagnostics reports.

Keeps a size-capped log of what an application did (messages, errors, events,
screens and captured console output) and compiles it, together with system
metadata and user preferences, into a single HTML report.

Quick start:
    from runtime_diagnostics import Diagnostics

    diagnostics = Diagnostics().setup(log_path="./logs/diagnostics.log")
    diagnostics.logger.log("Application started")
    diagnostics.logger.event("sync", description="42 items")

    report = diagnostics.create_report(preferences={"theme": "dark"})
    report.save_to("./reports")
    diagnostics.shutdown()

Exported names:
    Diagnostics:         Composition root owning store, logger and console tap.
    RollingLogStore:     The size-capped log file.
    DiagnosticsLogger:   log / error / event / screen entry points.
    ConsoleTap:          Mirrors stdout/stderr into the log.
    DiagnosticsReporter: Compiles reporter chapters into a report.
    DiagnosticsReport:   The compiled, immutable report.
"""

from runtime_diagnostics.core.console_tap import ConsoleTap
from runtime_diagnostics.core.log_store import RollingLogStore
from runtime_diagnostics.core.logger import DiagnosticsLogger
from runtime_diagnostics.diagnostics import Diagnostics
from runtime_diagnostics.reporting import (
    DiagnosticsChapter,
    DiagnosticsReport,
    DiagnosticsReporter,
    Reporter,
    ReportFilter,
)

__all__ = [
    "ConsoleTap",
    "Diagnostics",
    "DiagnosticsChapter",
    "DiagnosticsLogger",
    "DiagnosticsReport",
    "DiagnosticsReporter",
    "ReportFilter",
    "Reporter",
    "RollingLogStore",
]
__version__ = "0.1.0"
