"""Public logging API for the diagnostics log.

DiagnosticsLogger turns a call into a single text line and hands it to the
rolling log store:

    2024-01-15 12:34:56 | EVENT: checkout | paid by card | cart.py:checkout:L88

Formatting (timestamp, provenance lookup) happens on the caller's thread;
the write itself is queued on the store's worker, so logging never waits on
disk I/O.

Usage:
    logger = DiagnosticsLogger(store)
    logger.log("Fetched 42 records")
    logger.screen("Settings")
    logger.event("checkout", description="paid by card")
    try:
        ...
    except OSError as exc:
        logger.error(exc, description="while saving the draft")
"""

import datetime
import os
import sys
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any

from runtime_diagnostics.core.exceptions import NotSetUpError
from runtime_diagnostics.core.log_store import RollingLogStore
from runtime_diagnostics.core.session import format_timestamp


@dataclass
class LogLine:
    """One log call, flattened to text before it is written."""

    timestamp: datetime.datetime
    file: str
    function: str
    line: int
    body: str

    def to_text(self) -> str:
        """Render as ``timestamp | body | file:function:Lline``."""
        return (
            f"{format_timestamp(self.timestamp)} | {self.body} | "
            f"{self.file}:{self.function}:L{self.line}\n"
        )


class DiagnosticsLogger:
    """Formats log calls and forwards them to a RollingLogStore."""

    def __init__(self, store: RollingLogStore):
        self._store = store

    @property
    def store(self) -> RollingLogStore:
        return self._store

    def log(self, message: str, stacklevel: int = 1) -> Future[Any]:
        """Log a free-form message.

        Args:
            message: The message to log.
            stacklevel: Which caller frame to report as the source, 1 being
                the direct caller, as in ``logging.Logger.log``.

        Raises:
            NotSetUpError: If the store has not been set up.
        """
        return self._log(message, stacklevel)

    def error(
        self,
        error: BaseException,
        description: str | None = None,
        stacklevel: int = 1,
    ) -> Future[Any]:
        """Log an exception, optionally with extra context."""
        message = f"{error!r} | {error}"
        if description:
            message += f" | {description}"
        return self._log(f"ERROR: {message}", stacklevel)

    def event(
        self,
        name: str,
        description: str | None = None,
        stacklevel: int = 1,
    ) -> Future[Any]:
        """Log a named event, optionally with a description."""
        message = name
        if description:
            message += f" | {description}"
        return self._log(f"EVENT: {message}", stacklevel)

    def screen(self, name: str, stacklevel: int = 1) -> Future[Any]:
        """Log that the user navigated to a screen."""
        return self._log(f"SCREEN: {name}", stacklevel)

    def system(self, line: str) -> Future[Any]:
        """Log one line of captured console output.

        System lines carry neither timestamp nor provenance: they are
        verbatim console text.
        """
        self._require_ready()
        return self._store.append(f"SYSTEM: {line}\n")

    def _log(self, message: str, stacklevel: int) -> Future[Any]:
        self._require_ready()

        # 0 is _log, 1 the public method, 2 its caller
        frame = sys._getframe(stacklevel + 1)
        code = frame.f_code
        line = LogLine(
            timestamp=datetime.datetime.now(datetime.timezone.utc),
            file=os.path.basename(code.co_filename),
            function=code.co_name,
            line=frame.f_lineno,
            body=message,
        )
        return self._store.append(line.to_text())

    def _require_ready(self) -> None:
        if not self._store.is_ready:
            raise NotSetUpError(
                "DiagnosticsLogger used before the log store was set up"
            )
