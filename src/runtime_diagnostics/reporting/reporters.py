"""Reporters: collaborators that each produce one report chapter.

Built-in reporters, in their default order:

    GeneralInfoReporter        "Information"          app name, version, report date
    AppSystemMetadataReporter  "App System Metadata"  host, runtime and resources
    LogsReporter               "Logs"                 the full rolling log
    UserDefaultsReporter       "UserDefaults"         user preference values

Custom reporters subclass Reporter and implement ``produce_chapter()``.
"""

import datetime
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from markupsafe import Markup, escape

from runtime_diagnostics.core.log_store import RollingLogStore
from runtime_diagnostics.core.session import SESSION_SEPARATOR
from runtime_diagnostics.core.system_metadata import collect_system_metadata
from runtime_diagnostics.reporting.chapter import (
    DiagnosticsChapter,
    diagnostics_html,
    pretty_json,
)

PreferencesSource = Mapping[str, Any] | Callable[[], Mapping[str, Any]]


class Reporter(ABC):
    """Produces one chapter of a diagnostics report."""

    title: str = ""

    @abstractmethod
    def produce_chapter(self) -> DiagnosticsChapter:
        """Create the chapter. Called synchronously while compiling."""


class GeneralInfoReporter(Reporter):
    """Opening chapter with the app identity and a short description."""

    title = "Information"

    def __init__(
        self,
        app_name: str,
        app_version: str,
        description: str = "This report contains diagnostics to help investigate an issue.",
        title: str | None = None,
    ):
        self._app_name = app_name
        self._app_version = app_version
        self._description = description
        if title is not None:
            self.title = title

    def produce_chapter(self) -> DiagnosticsChapter:
        diagnostics = {
            "App name": self._app_name,
            "App version": self._app_version,
            "Report date": datetime.datetime.now(datetime.timezone.utc).strftime(
                "%Y-%m-%d %H:%M:%S UTC"
            ),
        }
        return DiagnosticsChapter(
            title=self.title,
            diagnostics=diagnostics,
            formatter=self._format,
        )

    def _format(self, diagnostics: Any) -> str:
        return Markup("<p>{}</p>").format(self._description) + diagnostics_html(diagnostics)


class AppSystemMetadataReporter(Reporter):
    """Host, runtime and resource information."""

    title = "App System Metadata"

    def __init__(self, app_name: str = "", app_version: str = "", disk_path: Path | str = "."):
        self._app_name = app_name
        self._app_version = app_version
        self._disk_path = disk_path

    def produce_chapter(self) -> DiagnosticsChapter:
        metadata = collect_system_metadata(
            app_name=self._app_name,
            app_version=self._app_version,
            disk_path=self._disk_path,
        )
        return DiagnosticsChapter(title=self.title, diagnostics=metadata.to_dict())


class LogsReporter(Reporter):
    """The complete content of the rolling diagnostics log."""

    title = "Logs"

    def __init__(self, store: RollingLogStore):
        self._store = store

    def produce_chapter(self) -> DiagnosticsChapter:
        data = self._store.read()
        diagnostics = None if data is None else data.decode("utf-8", errors="replace")
        return DiagnosticsChapter(
            title=self.title,
            diagnostics=diagnostics,
            formatter=format_logs,
        )


def format_logs(diagnostics: Any) -> str:
    """Render log text with one preformatted block per session."""
    if not isinstance(diagnostics, str):
        return "<p>Parsing the log failed</p>"

    sessions = [escape(session) for session in diagnostics.split(SESSION_SEPARATOR)]
    return Markup("<hr>").join(Markup("<pre>{}</pre>").format(s) for s in sessions)


class UserDefaultsReporter(Reporter):
    """User preference values, shown as sorted JSON."""

    title = "UserDefaults"

    def __init__(self, preferences: PreferencesSource | None = None, title: str | None = None):
        """Initialize the reporter.

        Args:
            preferences: The preferences mapping, or a callable returning it
                at report time so the chapter reflects the latest values.
            title: Override of the chapter title.
        """
        self._preferences = preferences
        if title is not None:
            self.title = title

    @classmethod
    def from_file(cls, path: Path | str, title: str | None = None) -> "UserDefaultsReporter":
        """Reporter reading a YAML or JSON preferences file at report time."""
        preferences_path = Path(path)

        def load() -> Mapping[str, Any]:
            with open(preferences_path, encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
            if not isinstance(loaded, Mapping):
                return {"value": loaded}
            return loaded

        return cls(load, title=title)

    def produce_chapter(self) -> DiagnosticsChapter:
        if self._preferences is None:
            preferences: Mapping[str, Any] = {}
        elif callable(self._preferences):
            preferences = self._preferences()
        else:
            preferences = self._preferences

        return DiagnosticsChapter(
            title=self.title,
            diagnostics=dict(preferences),
            formatter=format_user_defaults,
        )


def format_user_defaults(diagnostics: Any) -> str:
    if not isinstance(diagnostics, Mapping):
        return diagnostics_html(diagnostics)
    return Markup("<pre>{}</pre>").format(pretty_json(diagnostics))


def default_reporters(
    store: RollingLogStore,
    app_name: str,
    app_version: str,
    preferences: PreferencesSource | None = None,
) -> list[Reporter]:
    """The standard set of reporters, in report order."""
    disk_path = store.path.parent if store.path is not None else "."
    return [
        GeneralInfoReporter(app_name, app_version),
        AppSystemMetadataReporter(app_name, app_version, disk_path=disk_path),
        LogsReporter(store),
        UserDefaultsReporter(preferences),
    ]
