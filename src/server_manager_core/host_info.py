from __future__ import annotations

import platform
import socket
import time
from dataclasses import dataclass
from pathlib import Path

import psutil

NA = "N/A"


def _read(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError:
        return ""


def _human_bytes(n: float) -> str:
    for unit in ("B", "KiB", "MiB", "GiB", "TiB"):
        if n < 1024 or unit == "TiB":
            return f"{n:.1f} {unit}"
        n /= 1024.0
    return f"{n:.1f} TiB"


def _cpu_model() -> str:
    for line in _read("/proc/cpuinfo").splitlines():
        key, _, value = line.partition(":")
        if key.strip() in ("model name", "Model"):
            return value.strip()
    return platform.processor() or NA


def _total_memory() -> str:
    try:
        return _human_bytes(psutil.virtual_memory().total)
    except (OSError, psutil.Error):
        return NA


def _disk_usage(path: str = "/") -> str:
    try:
        usage = psutil.disk_usage(path)
    except (OSError, psutil.Error):
        return NA
    return f"{_human_bytes(usage.used)}/{_human_bytes(usage.total)} ({usage.percent:.0f}% used)"


def _uptime() -> str:
    try:
        seconds = max(0, int(time.time() - psutil.boot_time()))
    except (OSError, psutil.Error):
        return NA
    days, rem = divmod(seconds, 86400)
    hours, rem = divmod(rem, 3600)
    minutes = rem // 60
    parts = []
    if days:
        parts.append(f"{days} day{'s' if days != 1 else ''}")
    if hours:
        parts.append(f"{hours} hour{'s' if hours != 1 else ''}")
    parts.append(f"{minutes} minute{'s' if minutes != 1 else ''}")
    return "up " + ", ".join(parts)


@dataclass(frozen=True)
class HostInfo:
    hostname: str
    kernel: str
    cpu_model: str
    total_memory: str
    disk_usage: str
    uptime: str

    @classmethod
    def collect(cls) -> "HostInfo":
        uname = platform.uname()
        return cls(
            hostname=socket.gethostname() or NA,
            kernel=f"{uname.system} {uname.release} {uname.machine}".strip() or NA,
            cpu_model=_cpu_model(),
            total_memory=_total_memory(),
            disk_usage=_disk_usage("/"),
            uptime=_uptime(),
        )
