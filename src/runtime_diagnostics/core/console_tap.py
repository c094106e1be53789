"""Mirror process console output into the diagnostics log.

ConsoleTap redirects the stdout/stderr file descriptors into a pipe. A
reader thread drains the pipe, writes every chunk back to the original
console (so terminals, IDEs and ``docker logs`` still see it) and forwards
each complete line to a line sink, usually ``DiagnosticsLogger.system``.

Working at the descriptor level means output from C extensions and child
processes sharing the descriptors is captured too, not just ``print()``.

The tap stays off during automated test runs and when the interpreter's
standard streams are not backed by real descriptors (IDLE, notebooks and
other embedded interpreters), where redirection is unreliable.
"""

import io
import os
import sys
import threading
from collections.abc import Callable, Sequence
from typing import TextIO

from runtime_diagnostics.core.exceptions import NotSetUpError
from runtime_diagnostics.core.logging import get_logger, redirect_library_output

logger = get_logger(__name__)

# Environment variables that mark an automated test run
TEST_RUN_ENV_VARS = ("PYTEST_CURRENT_TEST", "RUNTIME_DIAGNOSTICS_TESTING")

READ_SIZE = 4096

STDERR_FD = 2

# Text without a newline is forwarded anyway once it grows this large
MAX_PENDING_BYTES = 64 * 1024


def is_running_tests() -> bool:
    """Whether the process is executing inside an automated test run."""
    return any(name in os.environ for name in TEST_RUN_ENV_VARS)


def has_console_descriptors() -> bool:
    """Whether stdout and stderr are backed by real file descriptors."""
    for stream in (sys.__stdout__, sys.__stderr__):
        if stream is None:
            return False
        try:
            stream.fileno()
        except (AttributeError, OSError, io.UnsupportedOperation):
            return False
    return True


def flush_python_streams() -> None:
    """Push text buffered in sys.stdout and sys.stderr to their descriptors."""
    for stream in (sys.stdout, sys.stderr):
        if stream is not None:
            try:
                stream.flush()
            except (OSError, ValueError):
                pass


class ConsoleTap:
    """Duplicates console descriptors into a pipe and forwards lines."""

    def __init__(
        self,
        line_sink: Callable[[str], object],
        fds: Sequence[int] = (1, 2),
    ):
        """Initialize the tap. Nothing is redirected until ``attach()``.

        Args:
            line_sink: Called with every captured line, without line ending.
            fds: Descriptors to capture. Output is echoed to a duplicate of
                the first one.
        """
        if not fds:
            raise ValueError("ConsoleTap needs at least one descriptor")
        self._line_sink = line_sink
        self._fds = tuple(fds)
        self._saved_fds: dict[int, int] = {}
        self._console_fd: int | None = None
        self._read_fd: int | None = None
        self._write_fd: int | None = None
        self._thread: threading.Thread | None = None
        self._pending = b""
        self._echo_enabled = True
        self._attached = False
        self._library_stream: TextIO | None = None
        self._sink_failed = False

    @property
    def is_attached(self) -> bool:
        return self._attached

    @staticmethod
    def is_supported() -> bool:
        """Whether capturing the console is possible and wanted here."""
        return not is_running_tests() and has_console_descriptors()

    def attach(self, force: bool = False) -> bool:
        """Start capturing the console descriptors.

        Args:
            force: Attach even when ``is_supported()`` says no.

        Returns:
            True if the tap is attached.
        """
        if self._attached:
            return True
        if not force and not self.is_supported():
            logger.info("Console capture disabled in this environment")
            return False

        # Text still sitting in Python's buffers belongs to the old target
        flush_python_streams()

        self._console_fd = os.dup(self._fds[0])
        self._saved_fds = {fd: os.dup(fd) for fd in self._fds}
        self._read_fd, self._write_fd = os.pipe()
        self._redirect_library_output()
        for fd in self._fds:
            os.dup2(self._write_fd, fd)

        self._pending = b""
        self._echo_enabled = True
        self._sink_failed = False
        self._thread = threading.Thread(
            target=self._pump, name="diagnostics-console-tap", daemon=True
        )
        self._thread.start()
        self._attached = True
        logger.debug("Console capture attached", fds=list(self._fds))
        return True

    def detach(self, timeout: float = 2.0) -> None:
        """Restore the original descriptors and stop the reader thread."""
        if not self._attached:
            return

        flush_python_streams()

        for fd, saved in self._saved_fds.items():
            os.dup2(saved, fd)
            os.close(saved)
        self._saved_fds = {}
        redirect_library_output(None)

        # Last write end closed: the reader sees EOF and exits
        if self._write_fd is not None:
            os.close(self._write_fd)
            self._write_fd = None

        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

        if self._library_stream is not None:
            self._library_stream.close()
            self._library_stream = None

        for fd in (self._read_fd, self._console_fd):
            if fd is not None:
                os.close(fd)
        self._read_fd = None
        self._console_fd = None
        self._attached = False
        logger.debug("Console capture detached")

    def _redirect_library_output(self) -> None:
        """Route library log output to the original stderr while it is captured.

        Library messages about failed log writes would otherwise be captured,
        fail to be written again and be reported again.
        """
        saved_stderr = self._saved_fds.get(STDERR_FD)
        if saved_stderr is None:
            return
        self._library_stream = os.fdopen(
            os.dup(saved_stderr), "w", encoding="utf-8", errors="replace", buffering=1
        )
        redirect_library_output(self._library_stream)

    # ------------------------------------------------------------------ #
    # Reader thread
    # ------------------------------------------------------------------ #

    def _pump(self) -> None:
        assert self._read_fd is not None
        while True:
            try:
                chunk = os.read(self._read_fd, READ_SIZE)
            except OSError:
                break
            if not chunk:
                break
            self._echo(chunk)
            self._capture(chunk)

        if self._pending:
            self._emit(self._pending)
            self._pending = b""

    def _echo(self, chunk: bytes) -> None:
        """Write captured bytes back to the original console."""
        if not self._echo_enabled or self._console_fd is None:
            return
        view = memoryview(chunk)
        try:
            while view:
                written = os.write(self._console_fd, view)
                view = view[written:]
        except OSError as e:
            # Reporting this goes through the console again, so only once
            self._echo_enabled = False
            logger.warning("Console echo failed, output is only captured", error=str(e))

    def _capture(self, chunk: bytes) -> None:
        data = self._pending + chunk
        lines = data.split(b"\n")
        self._pending = lines.pop()

        for raw in lines:
            self._emit(raw)

        if len(self._pending) > MAX_PENDING_BYTES:
            self._emit(self._pending)
            self._pending = b""

    def _emit(self, raw: bytes) -> None:
        try:
            line = raw.rstrip(b"\r").decode("utf-8")
        except UnicodeDecodeError as e:
            logger.warning("Captured console output is not valid UTF-8", error=str(e))
            return

        try:
            self._line_sink(line)
        except NotSetUpError:
            # Store already shut down; nothing left to write to
            pass
        except Exception as e:
            # The reader must keep draining the pipe or console writes block
            if not self._sink_failed:
                self._sink_failed = True
                logger.error(
                    "Console line sink failed, further failures are not reported",
                    error=str(e),
                    error_type=type(e).__name__,
                )
