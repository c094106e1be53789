"""Diagnostics report compilation.

Reporters produce chapters, filters rewrite them and the compiler renders
everything into one HTML document.
"""

from runtime_diagnostics.reporting.chapter import DiagnosticsChapter
from runtime_diagnostics.reporting.compiler import DiagnosticsReporter
from runtime_diagnostics.reporting.filters import (
    ContentFilter,
    KeyRedactionFilter,
    RegexRedactionFilter,
    ReportFilter,
)
from runtime_diagnostics.reporting.report import DiagnosticsReport, MimeType
from runtime_diagnostics.reporting.reporters import (
    AppSystemMetadataReporter,
    GeneralInfoReporter,
    LogsReporter,
    Reporter,
    UserDefaultsReporter,
    default_reporters,
)

__all__ = [
    "AppSystemMetadataReporter",
    "ContentFilter",
    "DiagnosticsChapter",
    "DiagnosticsReport",
    "DiagnosticsReporter",
    "GeneralInfoReporter",
    "KeyRedactionFilter",
    "LogsReporter",
    "MimeType",
    "RegexRedactionFilter",
    "ReportFilter",
    "Reporter",
    "UserDefaultsReporter",
    "default_reporters",
]
