"""Session markers for the rolling diagnostics log.

Every time a log store is set up, a short block describing the running
process is appended so that one run's lines can be told apart from the
previous run's:

    2024-01-15 12:34:56
    System: Linux 6.5.0
    Locale: en_US
    Timezone: CET
    Version: 1.4.2

When the file already holds earlier sessions the block is preceded by a
``---`` separator.
"""

import datetime
import locale
import platform
import time
from dataclasses import dataclass

# All timestamps in the log are GMT so sessions from different machines
# line up.
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

SESSION_SEPARATOR = "\n\n---\n\n"


def format_timestamp(moment: datetime.datetime | None = None) -> str:
    """Format a moment as used throughout the diagnostics log."""
    moment = moment or datetime.datetime.now(datetime.timezone.utc)
    return moment.astimezone(datetime.timezone.utc).strftime(TIMESTAMP_FORMAT)


@dataclass
class SessionInfo:
    """Environment description written at the start of every session."""

    date: str
    system: str
    locale: str
    timezone: str
    version: str

    def to_text(self) -> str:
        """Render the session block, including the trailing blank line."""
        return (
            f"{self.date}\n"
            f"System: {self.system}\n"
            f"Locale: {self.locale}\n"
            f"Timezone: {self.timezone}\n"
            f"Version: {self.version}\n\n"
        )


def _current_locale() -> str:
    try:
        language, _ = locale.getlocale()
    except ValueError:
        language = None
    return language or "unknown"


def collect_session_info(app_version: str = "0.0.0") -> SessionInfo:
    """Capture the session information for the running process.

    Args:
        app_version: Version of the host application.

    Returns:
        SessionInfo for the current moment.
    """
    return SessionInfo(
        date=format_timestamp(),
        system=f"{platform.system()} {platform.release()}".strip(),
        locale=_current_locale(),
        timezone=time.strftime("%Z") or "unknown",
        version=f"{app_version} (Python {platform.python_version()})",
    )


def session_block(info: SessionInfo, is_first_session: bool) -> str:
    """Text appended to the log file to start a session."""
    if is_first_session:
        return info.to_text()
    return SESSION_SEPARATOR + info.to_text()
