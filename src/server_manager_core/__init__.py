from .constants import CONFIG_FILENAME, SESSION_FILENAME
from .models import (
    AppState,
    BackupInterval,
    NewWorldRequest,
    ReadinessReport,
    ServiceBindingSpec,
    ServiceState,
    ServiceStatus,
    World,
)
from .backup_names import BackupDescriptor, BackupKind
from .config_store import ConfigStore
from .session_store import SessionStore
from .retry import RetryPolicy, poll_until
from .archive_tool import TarArchiveTool
from .supervisor import SystemdSupervisor
from .world_registry import WorldRegistry
from .backup_manager import BackupManager, BackupPager
from .service_controller import ServiceController
from .auto_backup import AutoBackupScheduler
from .installer import SteamCmdInstaller
from .network_client import NetworkClient
from .host_info import HostInfo

__all__ = [
    "CONFIG_FILENAME",
    "SESSION_FILENAME",
    "AppState",
    "BackupInterval",
    "NewWorldRequest",
    "ReadinessReport",
    "ServiceBindingSpec",
    "ServiceState",
    "ServiceStatus",
    "World",
    "BackupDescriptor",
    "BackupKind",
    "ConfigStore",
    "SessionStore",
    "RetryPolicy",
    "poll_until",
    "TarArchiveTool",
    "SystemdSupervisor",
    "WorldRegistry",
    "BackupManager",
    "BackupPager",
    "ServiceController",
    "AutoBackupScheduler",
    "SteamCmdInstaller",
    "NetworkClient",
    "HostInfo",
]
