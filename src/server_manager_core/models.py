from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .constants import (
    DEFAULT_PORT,
    POLL_ATTEMPTS,
    POLL_DELAY_SECONDS,
    READY_TIMEOUT_SECONDS,
    VALHEIM_APP_ID,
    VALHEIM_GAME_APP_ID,
)


@dataclass
class AppState:
    # Server install + save layout
    valheim_dir: str = "~/valheim_server"
    save_dir: str = "~/valheim_server/valheim_data"
    world_dir: str = "~/valheim_server/valheim_data/worlds_local"

    # Manager-owned folders
    backup_dir: str = "~/valheim_backups"
    log_dir: str = "~/valheim_logs"
    scripts_dir: str = "~/valheim_server_manager/BackupScripts"

    # Steam
    steamcmd_dir: str = "~/steamcmd"
    app_id: int = VALHEIM_APP_ID

    # systemd
    units_dir: str = "/etc/systemd/system"
    run_as_user: str = ""
    python_executable: str = ""

    # Polling
    poll_attempts: int = POLL_ATTEMPTS
    poll_delay_seconds: float = POLL_DELAY_SECONDS
    ready_timeout_seconds: int = READY_TIMEOUT_SECONDS


@dataclass(frozen=True)
class World:
    name: str
    running: bool = False
    selected: bool = False

    @property
    def status_label(self) -> str:
        return "(Running)" if self.running else "(Stopped)"


@dataclass(frozen=True)
class ServiceBindingSpec:
    """Everything needed to render one world's server unit."""

    world_name: str
    server_name: str
    port: int = DEFAULT_PORT
    password: str = ""
    public: bool = False
    crossplay: bool = False
    disable_raids: bool = False
    save_dir: str = ""
    install_dir: str = ""
    user: str = ""
    log_path: str = ""
    restart_policy: str = "on-failure"
    restart_sec: int = 10
    steam_app_id: int = VALHEIM_GAME_APP_ID


# Timers written before the 3-hour expression was fixed; systemd never fired these.
_LEGACY_ON_CALENDAR = {"*:0/180": "0/3:00"}


class BackupInterval(Enum):
    EVERY_30_MINUTES = ("*:0/30", "Every 30 minutes")
    HOURLY = ("hourly", "Every 1 hour")
    EVERY_3_HOURS = ("0/3:00", "Every 3 hours")

    def __init__(self, on_calendar: str, label: str):
        self.on_calendar = on_calendar
        self.label = label

    @classmethod
    def from_on_calendar(cls, expr: str) -> Optional["BackupInterval"]:
        expr = (expr or "").strip()
        expr = _LEGACY_ON_CALENDAR.get(expr, expr)
        for item in cls:
            if item.on_calendar == expr:
                return item
        return None


class ServiceState(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    NOT_FOUND = "not-found"


@dataclass(frozen=True)
class ServiceStatus:
    world: str
    state: ServiceState
    changed_at: str = ""  # ActiveEnter / InactiveEnter timestamp
    last_restart: str = ""  # ExecMainStartTimestamp

    @property
    def is_active(self) -> bool:
        return self.state is ServiceState.ACTIVE


@dataclass(frozen=True)
class ReadinessReport:
    mode: str  # "crossplay", "steam" or "fallback"
    join_code: str = ""
    lan_address: str = ""
    wan_address: str = ""

    @property
    def ready(self) -> bool:
        return self.mode != "fallback"


@dataclass(frozen=True)
class NewWorldRequest:
    server_name: str
    world_name: str
    port: Optional[int] = None  # None -> default port
    password: str = ""
    public: bool = False
    crossplay: bool = False
    disable_raids: bool = False
