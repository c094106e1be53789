"""Composition root tying the log store, logger, console tap and reports together.

One Diagnostics instance is created at application startup and shut down
on exit. It owns the rolling log store and hands it to everything that
needs it. There is no process-wide global.

Usage:
    from runtime_diagnostics import Diagnostics

    diagnostics = Diagnostics().setup()
    diagnostics.logger.log("Application started")
    ...
    report = diagnostics.create_report(preferences=user_preferences)
    report.save_to("./reports")
    diagnostics.shutdown()
"""

from collections.abc import Sequence
from pathlib import Path
from types import TracebackType

from runtime_diagnostics.config import Settings, get_settings
from runtime_diagnostics.core.console_tap import ConsoleTap
from runtime_diagnostics.core.exceptions import NotSetUpError
from runtime_diagnostics.core.log_store import RollingLogStore
from runtime_diagnostics.core.logger import DiagnosticsLogger
from runtime_diagnostics.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)
from runtime_diagnostics.reporting.compiler import DiagnosticsReporter
from runtime_diagnostics.reporting.filters import ReportFilter
from runtime_diagnostics.reporting.report import DiagnosticsReport
from runtime_diagnostics.reporting.reporters import (
    PreferencesSource,
    Reporter,
    default_reporters,
)

logger = get_logger(__name__)


class Diagnostics:
    """Owns the diagnostics components for the lifetime of the process."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.store = RollingLogStore(
            maximum_size=self.settings.maximum_size,
            trim_size=self.settings.trim_size,
            minimum_free_disk_space=self.settings.minimum_free_disk_space,
            file_creation_limit=self.settings.file_creation_limit,
            app_version=self.settings.app_version,
        )
        self.logger = DiagnosticsLogger(self.store)
        self.console_tap = ConsoleTap(line_sink=self.logger.system)

    @property
    def is_set_up(self) -> bool:
        return self.store.is_ready

    def setup(
        self,
        log_path: Path | str | None = None,
        capture_console: bool | None = None,
        configure_library_logging: bool = True,
    ) -> "Diagnostics":
        """Open the log, start a session and optionally capture the console.

        Args:
            log_path: Overrides ``settings.log_path``.
            capture_console: Overrides ``settings.capture_console``.
            configure_library_logging: Configure structlog for this library's
                own log output. Pass False when the host configures structlog.

        Raises:
            AlreadySetUpError: If called twice.
            LogFileCreationError: If the log file cannot be created.
        """
        if configure_library_logging:
            configure_logging(
                log_format=self.settings.log_format,
                log_level=self.settings.log_level,
            )

        path = Path(log_path) if log_path is not None else self.settings.log_path
        self.store.setup(path)
        bind_context(diagnostics_log=str(self.store.path))

        if capture_console is None:
            capture_console = self.settings.capture_console
        if capture_console:
            self.console_tap.attach()

        logger.info("Diagnostics set up", console_captured=self.console_tap.is_attached)
        return self

    def create_report(
        self,
        reporters: Sequence[Reporter] | None = None,
        filters: Sequence[ReportFilter] | None = None,
        preferences: PreferencesSource | None = None,
    ) -> DiagnosticsReport:
        """Compile a diagnostics report.

        Args:
            reporters: Reporters to use. Defaults to the built-in set.
            filters: Filters applied to every chapter, in order.
            preferences: User preferences for the default UserDefaults
                chapter. Ignored when ``reporters`` is given.

        Raises:
            NotSetUpError: If called before ``setup()``.
        """
        if not self.is_set_up:
            raise NotSetUpError("Call setup() before creating a diagnostics report")

        self.store.flush()
        if reporters is None:
            reporters = default_reporters(
                self.store,
                app_name=self.settings.app_name,
                app_version=self.settings.app_version,
                preferences=preferences,
            )
        compiler = DiagnosticsReporter(
            reporters,
            filters=filters,
            title=self.settings.resolved_report_title,
        )
        return compiler.create()

    def shutdown(self) -> None:
        """Stop console capture and finish pending writes."""
        self.console_tap.detach()
        self.store.close()
        clear_context()

    def __enter__(self) -> "Diagnostics":
        if not self.is_set_up:
            self.setup()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool:
        if exc_val is not None and self.is_set_up:
            self.logger.error(exc_val, description="unhandled exception")
        self.shutdown()
        return False
