"""Tests for the diagnostics logger facade."""

import datetime
import re

import pytest

from runtime_diagnostics.core.exceptions import NotSetUpError
from runtime_diagnostics.core.log_store import RollingLogStore
from runtime_diagnostics.core.logger import DiagnosticsLogger, LogLine
from runtime_diagnostics.core.session import format_timestamp

LINE_PATTERN = re.compile(
    r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} \| (?P<body>.*) \| "
    r"(?P<file>[^:]+):(?P<function>\w+):L(?P<line>\d+)$"
)


def read_lines(store: RollingLogStore) -> list[str]:
    content = store.read()
    assert content is not None
    return content.decode("utf-8").splitlines()


class TestLogLine:
    """Tests for line formatting."""

    def test_to_text(self) -> None:
        """A line is timestamp, body and provenance joined by pipes."""
        line = LogLine(
            timestamp=datetime.datetime(2024, 1, 15, 12, 34, 56, tzinfo=datetime.timezone.utc),
            file="cart.py",
            function="checkout",
            line=88,
            body="EVENT: checkout",
        )
        assert line.to_text() == "2024-01-15 12:34:56 | EVENT: checkout | cart.py:checkout:L88\n"

    def test_timestamps_are_gmt(self) -> None:
        """Aware timestamps are converted to GMT before formatting."""
        plus_two = datetime.timezone(datetime.timedelta(hours=2))
        moment = datetime.datetime(2024, 1, 15, 14, 0, 0, tzinfo=plus_two)
        assert format_timestamp(moment) == "2024-01-15 12:00:00"


class TestDiagnosticsLogger:
    """Tests for the public logging calls."""

    def test_log_records_caller(self, store: RollingLogStore) -> None:
        """Provenance points at the calling function, not the logger."""
        logger = DiagnosticsLogger(store)
        logger.log("Fetched 42 records")

        match = LINE_PATTERN.match(read_lines(store)[0])
        assert match is not None
        assert match["body"] == "Fetched 42 records"
        assert match["file"] == "test_logger.py"
        assert match["function"] == "test_log_records_caller"

    def test_stacklevel_skips_helpers(self, store: RollingLogStore) -> None:
        """A helper can attribute the line to its own caller."""
        logger = DiagnosticsLogger(store)

        def helper(message: str) -> None:
            logger.log(message, stacklevel=2)

        helper("through a helper")

        match = LINE_PATTERN.match(read_lines(store)[0])
        assert match is not None
        assert match["function"] == "test_stacklevel_skips_helpers"

    def test_error(self, store: RollingLogStore) -> None:
        """Errors show their repr, message and optional description."""
        logger = DiagnosticsLogger(store)
        logger.error(ValueError("bad input"), description="while parsing")

        match = LINE_PATTERN.match(read_lines(store)[0])
        assert match is not None
        assert match["body"] == "ERROR: ValueError('bad input') | bad input | while parsing"

    def test_event_and_screen(self, store: RollingLogStore) -> None:
        """Events and screens carry their prefixes."""
        logger = DiagnosticsLogger(store)
        logger.event("checkout", description="paid by card")
        logger.event("logout")
        logger.screen("Settings")

        bodies = [LINE_PATTERN.match(line)["body"] for line in read_lines(store)]  # type: ignore[index]
        assert bodies == [
            "EVENT: checkout | paid by card",
            "EVENT: logout",
            "SCREEN: Settings",
        ]

    def test_system_lines_are_verbatim(self, store: RollingLogStore) -> None:
        """Console lines carry no timestamp or provenance."""
        logger = DiagnosticsLogger(store)
        logger.system("warning: something on stderr")
        assert store.read() == b"SYSTEM: warning: something on stderr\n"

    def test_requires_setup(self) -> None:
        """Every call fails before the store is set up."""
        store = RollingLogStore()
        logger = DiagnosticsLogger(store)
        try:
            with pytest.raises(NotSetUpError):
                logger.log("too early")
            with pytest.raises(NotSetUpError):
                logger.system("too early")
        finally:
            store.close()
