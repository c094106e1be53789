"""Custom exceptions for runtime diagnostics."""


class DiagnosticsError(Exception):
    """Base exception for runtime diagnostics errors."""

    pass


class SetupError(DiagnosticsError):
    """Raised when the diagnostics log is used in the wrong lifecycle state."""

    pass


class AlreadySetUpError(SetupError):
    """Raised when setup is called on a log store that is already set up."""

    pass


class NotSetUpError(SetupError):
    """Raised when logging or reading before the log store is set up."""

    pass


class LogFileCreationError(DiagnosticsError):
    """Raised when the log file could not be created within the retry limit."""

    pass


class LogWriteError(DiagnosticsError):
    """Raised when an append failed even after recreating the log file."""

    pass


class ReportError(DiagnosticsError):
    """Raised when a diagnostics report cannot be compiled."""

    pass


class DuplicateChapterError(ReportError):
    """Raised when two chapters in one report share the same title."""

    pass
