"""Structured logging for the library's own operational messages.

Trims, dropped writes, console tap lifecycle and compiled reports are
reported here. This is separate from the rolling diagnostics log that
applications write to through ``DiagnosticsLogger``.

Only the ``runtime_diagnostics`` stdlib logger gets a handler, so the host
application's root logger is left as it was.

Example usage:
    from runtime_diagnostics.core.logging import configure_logging, get_logger

    configure_logging(log_format="console", log_level="DEBUG")
    logger = get_logger(__name__)
    logger.info("Trimmed diagnostics log", removed_bytes=102400)
"""

import logging
import sys
from typing import Any, Literal, TextIO

import structlog
from structlog.types import Processor

LIBRARY_LOGGER = "runtime_diagnostics"

LogFormat = Literal["json", "console"]


# Set while a console tap owns fd 2, so library output bypasses the capture pipe
_library_stream: TextIO | None = None


def redirect_library_output(stream: TextIO | None) -> None:
    """Send library log output to ``stream`` instead of ``sys.stderr``.

    Pass None to go back to ``sys.stderr``.
    """
    global _library_stream
    _library_stream = stream


class StderrHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """Stream handler writing to the redirected stream or the current ``sys.stderr``.

    Test runners swap ``sys.stderr``; binding the stream once would keep
    writing to a replaced or closed one.
    """

    def __init__(self) -> None:
        super().__init__(sys.stderr)

    @property  # type: ignore[override]
    def stream(self) -> Any:
        return _library_stream or sys.stderr

    @stream.setter
    def stream(self, value: Any) -> None:
        pass


def build_processors(log_format: LogFormat) -> list[Processor]:
    """Processor chain for the given output format."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # Plain text: with console capture on, this output ends up in the log file
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=False,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    return processors


def configure_logging(
    log_format: LogFormat = "json",
    log_level: str = "INFO",
) -> None:
    """Configure structured logging for the library.

    Safe to call more than once; the library handler is replaced, never
    duplicated.

    Args:
        log_format: "json" for log aggregation, "console" for humans.
        log_level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=build_processors(log_format),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    library_logger = logging.getLogger(LIBRARY_LOGGER)
    for handler in list(library_logger.handlers):
        library_logger.removeHandler(handler)
    handler = StderrHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    library_logger.addHandler(handler)
    library_logger.setLevel(level)
    library_logger.propagate = False


def get_logger(name: str = LIBRARY_LOGGER) -> structlog.BoundLogger:
    """Get a structured logger, normally with ``__name__`` of the caller."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind values that are added to every following library log event.

    Example:
        bind_context(diagnostics_log="/var/log/app/diagnostics.log")
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()
