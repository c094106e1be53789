"""Snapshot of the host system for diagnostics reports.

Collects what a support engineer needs to reproduce a problem:

1. Application - name and version
2. Runtime - Python implementation and version
3. OS - system, release, machine architecture, hostname
4. Resources - CPU cores, RAM, free disk space next to the log file
5. Process - pid, threads, resident memory
6. Locale - preferred language and timezone
"""

import datetime
import locale
import platform
import threading
import time
from dataclasses import dataclass
from pathlib import Path

import psutil

GIGABYTE = 1024**3
MEGABYTE = 1024**2


@dataclass
class SystemMetadata:
    """Host and process information at report time."""

    app_name: str = ""
    app_version: str = ""

    # Runtime
    python_version: str = ""
    python_implementation: str = ""

    # OS
    os_name: str = ""
    os_release: str = ""
    machine: str = ""
    hostname: str = ""

    # Resources
    physical_cores: int | None = None
    logical_cores: int | None = None
    ram_total_gb: float | None = None
    ram_available_gb: float | None = None
    disk_free_gb: float | None = None

    # Process
    pid: int | None = None
    thread_count: int = 0
    process_memory_mb: float | None = None
    uptime_hours: float | None = None

    # Locale
    locale: str = ""
    timezone: str = ""

    def to_dict(self) -> dict[str, str]:
        """Human readable key/value pairs, skipping unknown values."""
        rows: dict[str, str] = {
            "App name": self.app_name,
            "App version": self.app_version,
            "Python": f"{self.python_implementation} {self.python_version}",
            "System": f"{self.os_name} {self.os_release}",
            "Machine": self.machine,
            "Hostname": self.hostname,
        }

        if self.logical_cores is not None:
            rows["CPU cores"] = f"{self.physical_cores or '?'} physical, {self.logical_cores} logical"
        if self.ram_total_gb is not None:
            rows["RAM"] = f"{self.ram_available_gb:.1f} GB available of {self.ram_total_gb:.1f} GB"
        if self.disk_free_gb is not None:
            rows["Free disk space"] = f"{self.disk_free_gb:.1f} GB"
        if self.pid is not None:
            rows["Process"] = f"pid={self.pid}, threads={self.thread_count}"
        if self.process_memory_mb is not None:
            rows["Process memory"] = f"{self.process_memory_mb:.1f} MB"
        if self.uptime_hours is not None:
            rows["System uptime"] = f"{self.uptime_hours:.1f} hours"

        rows["Locale"] = self.locale
        rows["Timezone"] = self.timezone
        return {key: value for key, value in rows.items() if value.strip()}


def collect_system_metadata(
    app_name: str = "",
    app_version: str = "",
    disk_path: Path | str = ".",
) -> SystemMetadata:
    """Collect system metadata.

    Every psutil probe is optional: a value that cannot be read on this
    platform stays None and is left out of the report.

    Args:
        app_name: Name of the host application.
        app_version: Version of the host application.
        disk_path: Path whose volume is checked for free space.
    """
    try:
        language, _ = locale.getlocale()
    except ValueError:
        language = None

    meta = SystemMetadata(
        app_name=app_name,
        app_version=app_version,
        python_version=platform.python_version(),
        python_implementation=platform.python_implementation(),
        os_name=platform.system(),
        os_release=platform.release(),
        machine=platform.machine(),
        hostname=platform.node(),
        thread_count=threading.active_count(),
        locale=language or "unknown",
        timezone=time.strftime("%Z"),
    )

    try:
        meta.physical_cores = psutil.cpu_count(logical=False)
        meta.logical_cores = psutil.cpu_count(logical=True)
    except Exception:
        pass

    try:
        mem = psutil.virtual_memory()
        meta.ram_total_gb = mem.total / GIGABYTE
        meta.ram_available_gb = mem.available / GIGABYTE
    except Exception:
        pass

    try:
        meta.disk_free_gb = psutil.disk_usage(str(disk_path)).free / GIGABYTE
    except Exception:
        pass

    try:
        process = psutil.Process()
        meta.pid = process.pid
        meta.process_memory_mb = process.memory_info().rss / MEGABYTE
    except Exception:
        pass

    try:
        uptime_seconds = datetime.datetime.now().timestamp() - psutil.boot_time()
        meta.uptime_hours = uptime_seconds / 3600
    except Exception:
        pass

    return meta
