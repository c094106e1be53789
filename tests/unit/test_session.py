"""Tests for session markers and timestamps."""

import re

from runtime_diagnostics.core.session import (
    SESSION_SEPARATOR,
    SessionInfo,
    collect_session_info,
    format_timestamp,
    session_block,
)


def test_format_timestamp_defaults_to_now() -> None:
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}", format_timestamp())


def test_collect_session_info() -> None:
    info = collect_session_info("4.5.6")
    assert info.version.startswith("4.5.6 (Python ")
    assert info.system
    assert info.locale
    assert info.timezone


def test_session_block(session_info: SessionInfo) -> None:
    assert session_block(session_info, is_first_session=True) == session_info.to_text()
    assert session_block(session_info, is_first_session=False) == (
        SESSION_SEPARATOR + session_info.to_text()
    )
