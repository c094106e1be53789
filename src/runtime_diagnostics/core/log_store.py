"""Size-capped, crash-safe rolling log file.

The store owns a single text file and keeps it below a maximum size by
cutting whole lines off its head. All file access happens on one worker
thread, so appends from any number of threads are written in submission
order and never interleave:

1. ``append()`` only enqueues; callers never wait on disk I/O
2. Writes are dropped while free disk space is below a floor
3. A log file that disappears at runtime is recreated and the write retried once
4. Trimming rewrites the file atomically (temp file + ``os.replace``)
5. ``read()`` runs on the same worker, so it sees every earlier append

Usage:
    from runtime_diagnostics.core.log_store import RollingLogStore

    store = RollingLogStore(maximum_size=2 * 1024 * 1024)
    store.setup("/var/log/myapp/diagnostics.log")
    store.append("2024-01-15 12:00:00 | started | app.py:main:L12\\n")
    content = store.read()
"""

import os
import tempfile
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any

import psutil

from runtime_diagnostics.core.exceptions import (
    AlreadySetUpError,
    DiagnosticsError,
    LogFileCreationError,
    LogWriteError,
    NotSetUpError,
)
from runtime_diagnostics.core.logging import get_logger
from runtime_diagnostics.core.session import (
    SessionInfo,
    collect_session_info,
    session_block,
)

logger = get_logger(__name__)

DEFAULT_MAXIMUM_SIZE = 2 * 1024 * 1024  # 2 MB
DEFAULT_TRIM_SIZE = 100 * 1024  # 100 KB
DEFAULT_MINIMUM_FREE_DISK_SPACE = 500 * 1024 * 1024  # 500 MB
DEFAULT_FILE_CREATION_LIMIT = 2


class RollingLogStore:
    """Append-only log file with a hard size cap.

    ``size`` is the running byte length of the file. It is measured once at
    setup and then updated incrementally by the worker, so the hot path never
    stats the file.
    """

    def __init__(
        self,
        maximum_size: int = DEFAULT_MAXIMUM_SIZE,
        trim_size: int = DEFAULT_TRIM_SIZE,
        minimum_free_disk_space: int = DEFAULT_MINIMUM_FREE_DISK_SPACE,
        file_creation_limit: int = DEFAULT_FILE_CREATION_LIMIT,
        app_version: str = "0.0.0",
    ):
        """Initialize the store. Nothing touches disk until ``setup()``.

        Args:
            maximum_size: Size in bytes above which the file is trimmed.
            trim_size: Extra bytes cut below ``maximum_size`` on each trim,
                so that trimming does not happen on every append.
            minimum_free_disk_space: Writes are dropped when less free space
                than this is left on the log file's volume.
            file_creation_limit: Maximum number of times the file may be
                created before creation is treated as a fatal error.
            app_version: Version written into session markers.

        Raises:
            ValueError: If the sizes are inconsistent.
        """
        if maximum_size <= 0:
            raise ValueError(f"maximum_size must be > 0, got {maximum_size}")
        if not 0 <= trim_size < maximum_size:
            raise ValueError(
                f"trim_size must be >= 0 and < maximum_size, got {trim_size}"
            )

        self._maximum_size = maximum_size
        self._trim_size = trim_size
        self._minimum_free_disk_space = minimum_free_disk_space
        self._file_creation_limit = file_creation_limit
        self._app_version = app_version

        self._path: Path | None = None
        self._size = 0
        self._is_ready = False
        self._file_creation_count = 0
        # Set while writes keep failing, so each failure episode is logged once
        self._failing = False
        self._suppressed_failures = 0
        self._low_disk = False
        self._setup_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="diagnostics-log"
        )

    # ------------------------------------------------------------------ #
    # Properties
    # ------------------------------------------------------------------ #

    @property
    def path(self) -> Path | None:
        """Absolute location of the log file, once set up."""
        return self._path

    @property
    def size(self) -> int:
        """Running byte length of the log file."""
        return self._size

    @property
    def maximum_size(self) -> int:
        return self._maximum_size

    @property
    def trim_size(self) -> int:
        return self._trim_size

    @property
    def is_ready(self) -> bool:
        """Whether setup has completed and writes may proceed."""
        return self._is_ready

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def setup(
        self,
        path: Path | str,
        start_session: bool = True,
        session_info: SessionInfo | None = None,
    ) -> None:
        """Open or create the log file and get ready for writing.

        Args:
            path: Location of the log file. Parent directories are created.
            start_session: Whether to append a session marker. Tools that only
                read an existing log pass False.
            session_info: Session marker to write. Collected from the running
                process when omitted.

        Raises:
            AlreadySetUpError: If the store was already set up.
            LogFileCreationError: If the file could not be created.
        """
        with self._setup_lock:
            if self._is_ready:
                raise AlreadySetUpError(f"Log store is already set up at {self._path}")

            self._path = Path(path).absolute()
            self._create_file_if_necessary()

            with open(self._path, "rb") as f:
                self._size = f.seek(0, os.SEEK_END)

            self._is_ready = True

        logger.debug("Diagnostics log ready", path=str(self._path), size=self._size)

        if start_session:
            self.start_new_session(session_info)

    def start_new_session(self, session_info: SessionInfo | None = None) -> Future[Any]:
        """Queue a session marker.

        The marker is written bare into an empty file and behind a ``---``
        separator otherwise.
        """
        self._require_ready()
        info = session_info or collect_session_info(self._app_version)
        return self._submit(self._write_session, info)

    def flush(self, timeout: float | None = None) -> None:
        """Block until every previously queued operation has run.

        Raises:
            NotSetUpError: If the store has been closed.
        """
        self._schedule(lambda: None).result(timeout=timeout)

    def close(self) -> None:
        """Finish queued writes and stop the worker thread.

        The store cannot be used afterwards.
        """
        self._is_ready = False
        self._executor.shutdown(wait=True)

    # ------------------------------------------------------------------ #
    # Public operations
    # ------------------------------------------------------------------ #

    def append(self, text: str) -> Future[Any]:
        """Queue ``text`` to be appended to the log file.

        Safe to call from any thread. Failures on the worker are logged and
        never reach the caller; the returned future resolves once the write
        has been attempted.

        Args:
            text: Text to append, normally one or more complete lines.

        Returns:
            Future resolving to None after the write was attempted.

        Raises:
            NotSetUpError: If called before ``setup()``.
        """
        self._require_ready()
        return self._submit(self._write, text)

    def read(self) -> bytes | None:
        """Return the complete log file content.

        Runs on the worker thread, behind every append queued before it.

        Returns:
            The raw file bytes, or None if the file could not be read.

        Raises:
            NotSetUpError: If called before ``setup()``.
        """
        self._require_ready()
        return self._schedule(self._read_file).result()

    def delete(self) -> None:
        """Remove the log file. Does nothing when it does not exist."""
        if self._path is None:
            return
        if self._is_ready:
            self._schedule(self._delete_file).result()
        else:
            self._delete_file()

    def free_disk_space(self) -> int:
        """Free bytes on the volume holding the log file.

        Raises:
            NotSetUpError: If called before ``setup()``.
        """
        if self._path is None:
            raise NotSetUpError("The diagnostics log has no path before setup()")
        return int(psutil.disk_usage(str(self._path.parent)).free)

    # ------------------------------------------------------------------ #
    # Worker-side helpers (only ever run on the executor thread)
    # ------------------------------------------------------------------ #

    def _submit(self, fn: Callable[..., None], *args: Any) -> Future[Any]:
        return self._schedule(self._guarded, fn, *args)

    def _schedule(self, fn: Callable[..., Any], *args: Any) -> Future[Any]:
        try:
            return self._executor.submit(fn, *args)
        except RuntimeError as e:
            # close() won the race against a caller that passed the ready check
            raise NotSetUpError("The diagnostics log has been closed") from e

    def _guarded(self, fn: Callable[..., None], *args: Any) -> None:
        try:
            fn(*args)
        except (DiagnosticsError, OSError) as e:
            if self._failing:
                self._suppressed_failures += 1
                return
            self._failing = True
            logger.error(
                "Diagnostics log write failed, repeats are suppressed until a write succeeds",
                error=str(e),
                error_type=type(e).__name__,
                path=str(self._path),
            )
            return

        if self._failing:
            logger.info(
                "Diagnostics log writes recovered",
                suppressed_failures=self._suppressed_failures,
            )
            self._failing = False
            self._suppressed_failures = 0

    def _write_session(self, info: SessionInfo) -> None:
        self._write(session_block(info, is_first_session=self._size == 0))

    def _write(self, output: str, retry: bool = True) -> None:
        """Append ``output`` to the file, recreating it once if it vanished."""
        assert self._path is not None

        # Losing a log line beats provoking a disk-full crash elsewhere.
        if not self._has_enough_disk_space():
            if not self._low_disk:
                self._low_disk = True
                logger.debug("Dropping log writes, not enough free disk space")
            return
        self._low_disk = False

        data = output.encode("utf-8")

        try:
            # No O_CREAT: a file that disappeared must be noticed, not
            # silently recreated with a stale size.
            fd = os.open(self._path, os.O_WRONLY | os.O_APPEND)
        except OSError as e:
            if not retry:
                raise LogWriteError(f"Could not open {self._path} for writing: {e}") from e
            if not self._failing:
                logger.warning("Log file disappeared, recreating it", path=str(self._path))
            self._create_file_if_necessary()
            self._size = self._path.stat().st_size
            self._write(output, retry=False)
            return

        try:
            with os.fdopen(fd, "ab") as f:
                f.write(data)
        except OSError as e:
            raise LogWriteError(f"Could not write to {self._path}: {e}") from e

        self._size += len(data)
        self._trim_if_needed()

    def _trim_if_needed(self) -> None:
        """Cut whole lines off the head once the file exceeds the cap."""
        if self._size <= self._maximum_size:
            return

        assert self._path is not None
        try:
            data = self._path.read_bytes()
        except OSError as e:
            logger.warning("Skipping trim, log file is unreadable", error=str(e))
            return

        if not data:
            logger.warning("Skipping trim, log file is unexpectedly empty")
            return

        target = self._maximum_size - self._trim_size
        total = len(data)
        position = 0
        while total - position > target:
            newline = data.find(b"\n", position)
            if newline == -1:
                break
            position = newline + 1

        if position == 0:
            return

        try:
            self._replace_contents(data[position:])
        except OSError as e:
            logger.warning("Skipping trim, log file could not be rewritten", error=str(e))
            return

        self._size = total - position
        logger.debug("Trimmed diagnostics log", removed_bytes=position, size=self._size)

    def _replace_contents(self, data: bytes) -> None:
        """Atomically replace the log file with ``data``."""
        assert self._path is not None
        with tempfile.NamedTemporaryFile(
            "wb",
            dir=self._path.parent,
            prefix=f".{self._path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
            tmp_path = tmp.name
        try:
            os.replace(tmp_path, self._path)
        except OSError:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def _read_file(self) -> bytes | None:
        assert self._path is not None
        try:
            return self._path.read_bytes()
        except OSError as e:
            logger.warning("Could not read diagnostics log", error=str(e))
            return None

    def _delete_file(self) -> None:
        assert self._path is not None
        self._path.unlink(missing_ok=True)
        self._size = 0
        # A deliberate delete is not a runaway recreation loop.
        self._file_creation_count = 0

    # ------------------------------------------------------------------ #
    # Shared helpers
    # ------------------------------------------------------------------ #

    def _require_ready(self) -> None:
        if not self._is_ready:
            raise NotSetUpError(
                "The diagnostics log is not set up. Call setup() before logging."
            )

    def _has_enough_disk_space(self) -> bool:
        try:
            free = self.free_disk_space()
        except OSError:
            # Volume cannot be inspected (e.g. directory removed); let the
            # write path recreate it.
            return True
        return free > self._minimum_free_disk_space

    def _create_file_if_necessary(self) -> None:
        """Create the log file if it does not exist yet.

        Raises:
            LogFileCreationError: If the creation limit is exceeded or the
                file cannot be created.
        """
        assert self._path is not None
        if self._path.exists():
            return

        if self._file_creation_count >= self._file_creation_limit:
            raise LogFileCreationError(
                f"Log file {self._path} was created {self._file_creation_count} "
                f"times already (limit {self._file_creation_limit})"
            )

        self._file_creation_count += 1
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.touch()
        except OSError as e:
            raise LogFileCreationError(f"Unable to create the log file {self._path}: {e}") from e
