from __future__ import annotations

import getpass
import sys
import time
from copy import copy
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from src.server_manager_core import (
    CONFIG_FILENAME,
    SESSION_FILENAME,
    AppState,
    AutoBackupScheduler,
    BackupDescriptor,
    BackupInterval,
    BackupManager,
    BackupPager,
    ConfigStore,
    HostInfo,
    NetworkClient,
    NewWorldRequest,
    ReadinessReport,
    RetryPolicy,
    ServiceBindingSpec,
    ServiceController,
    ServiceStatus,
    SessionStore,
    SteamCmdInstaller,
    SystemdSupervisor,
    TarArchiveTool,
    World,
    WorldRegistry,
)
from src.server_manager_core.backup_names import decode_timestamp
from src.server_manager_core.constants import BACKUP_PAGE_SIZE, DEFAULT_PORT
from src.server_manager_core.unit_files import render_server_unit, server_unit_name
from src.server_manager_core.world_registry import server_log_name

from .errors import NoWorldSelectedError, ValidationError
from .validators import validate_new_world_request, validate_polling, validate_state_paths


def _p(value: str) -> Path:
    return Path(value).expanduser()


@dataclass(frozen=True)
class MenuHeader:
    lan_ip: str
    wan_ip: str
    world: str
    running: Optional[bool]  # None when no world is selected
    port: Optional[int]
    join_code: str
    auto_backup: str
    last_backup: str


class AppController:
    """
    UI-agnostic orchestration layer.

    Owns:
      - Live state store + config persistence
      - Session (selected world)
      - World registry, backup store, service controller, auto-backup scheduler
      - SteamCMD provisioning

    UI should:
      - call controller methods
      - catch OrchestrationError subclasses and show them
      - read log lines from the log_fn it passed in
    """

    def __init__(
        self,
        app_dir: Path,
        log_fn: Callable[[str], None],
        *,
        config_path: Optional[Path] = None,
        supervisor=None,
        network: Optional[NetworkClient] = None,
        installer: Optional[SteamCmdInstaller] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._log = log_fn
        self._app_dir = Path(app_dir).expanduser().resolve()
        self._config_path = Path(config_path) if config_path else self._app_dir / CONFIG_FILENAME

        self._state = AppState()
        self._config = ConfigStore(self._config_path)
        self._session = SessionStore(self._config_path.parent / SESSION_FILENAME)

        self._supervisor_override = supervisor
        self._net = network or NetworkClient(log_fn)
        self._installer = installer or SteamCmdInstaller(log_fn, network=self._net)
        self._sleep = sleep
        self._clock = clock

        self._wan_ip: Optional[str] = None
        self._ready_offsets: dict = {}
        self._build_components()

    # -------------------------
    # State / Config
    # -------------------------

    def get_state(self) -> AppState:
        return copy(self._state)

    def update_state(self, transform: Callable[[AppState], AppState]) -> AppState:
        self._state = copy(transform(copy(self._state)))
        self._build_components()
        return copy(self._state)

    def load_state(self) -> None:
        loaded = self._config.load()
        validate_state_paths(loaded)
        validate_polling(loaded)
        self._state = loaded
        self._build_components()
        if self._config_path.exists():
            self._log(f"[INFO] Config loaded from {self._config_path}")
        else:
            self._log("[INFO] No config file found. Using defaults.")

    def save_state(self) -> None:
        self._config.save(self.get_state())
        self._log(f"[INFO] Config saved to {self._config_path}")

    def prepare_directories(self) -> None:
        s = self.get_state()
        for d in (s.valheim_dir, s.world_dir, s.backup_dir, s.log_dir, s.scripts_dir):
            _p(d).mkdir(parents=True, exist_ok=True)

    def _build_components(self) -> None:
        s = self.get_state()
        policy = RetryPolicy(attempts=int(s.poll_attempts), delay_seconds=float(s.poll_delay_seconds))

        self._supervisor = self._supervisor_override or SystemdSupervisor(_p(s.units_dir), self._log)
        self._archive = TarArchiveTool(self._log)
        self._registry = WorldRegistry(
            _p(s.world_dir),
            self._supervisor,
            self._session,
            self._log,
            backup_dir=_p(s.backup_dir),
            log_dir=_p(s.log_dir),
            scripts_dir=_p(s.scripts_dir),
        )
        self._backups = BackupManager(_p(s.world_dir), _p(s.backup_dir), self._log, archive=self._archive, clock=self._clock)
        self._server = ServiceController(
            self._supervisor,
            self._log,
            log_dir=_p(s.log_dir),
            policy=policy,
            network=self._net,
            sleep=self._sleep,
        )
        self._auto = AutoBackupScheduler(
            self._supervisor,
            _p(s.scripts_dir),
            self._log,
            python=s.python_executable or sys.executable,
            app_root=self._app_dir.parent,
            config_path=self._config_path,
            user=self._run_as_user(),
        )

    def _run_as_user(self) -> str:
        user = self.get_state().run_as_user
        if user:
            return user
        try:
            return getpass.getuser()
        except (KeyError, OSError):
            return ""

    # -------------------------
    # Worlds
    # -------------------------

    def selected_world(self) -> Optional[str]:
        return self._session.get()

    def require_world(self) -> str:
        world = self.selected_world()
        if not world:
            raise NoWorldSelectedError("No world selected.")
        return world

    def list_worlds(self) -> List[World]:
        return list(self._registry.list())

    def select_world(self, choice) -> World:
        return self._registry.select(choice)

    def deletable_worlds(self) -> List[str]:
        return self._registry.list_valid()

    def used_ports(self) -> List[int]:
        return self._registry.used_ports()

    def generate_world(self, req: NewWorldRequest) -> ServiceBindingSpec:
        """
        Validate everything first; only then write the unit and start it.
        A rejected request leaves nothing behind.
        """
        s = self.get_state()
        validate_new_world_request(req)
        world = req.world_name.strip()
        self._registry.validate_new_name(world)
        port = self._registry.allocate_port(req.port)

        if not self._installer.server_installed(_p(s.valheim_dir)):
            raise ValidationError("Valheim server is not installed. Install it from the Steam menu first.")

        self.prepare_directories()
        spec = ServiceBindingSpec(
            world_name=world,
            server_name=req.server_name.strip(),
            port=port,
            password=req.password,
            public=req.public,
            crossplay=req.crossplay,
            disable_raids=req.disable_raids,
            save_dir=str(_p(s.save_dir)),
            install_dir=str(_p(s.valheim_dir)),
            user=self._run_as_user(),
            log_path=str(_p(s.log_dir) / server_log_name(world)),
        )

        unit = server_unit_name(world)
        self._supervisor.define(unit, render_server_unit(spec))
        self._supervisor.reload()
        self._supervisor.enable(unit)

        self._ready_offsets[world] = self._server.log_offset(world)
        self._server.start(world)
        self._log(f"[OK] World '{world}' created on port {port}.")
        return spec

    def delete_world(self, name: str) -> None:
        self._registry.delete(name)

    # -------------------------
    # Server lifecycle
    # -------------------------

    def start_server(self) -> bool:
        world = self.require_world()
        self._ready_offsets[world] = self._server.log_offset(world)
        return self._server.start(world)

    def stop_server(self) -> bool:
        return self._server.stop(self.require_world())

    def server_status(self) -> ServiceStatus:
        return self._server.status(self.require_world())

    def is_server_running(self) -> bool:
        world = self.selected_world()
        return bool(world) and self._server.is_running(world)

    def await_ready(self, world: Optional[str] = None, timeout_seconds: Optional[float] = None) -> ReadinessReport:
        world = world or self.require_world()
        port = self._registry.binding_port(world) or DEFAULT_PORT
        timeout = timeout_seconds if timeout_seconds is not None else self.get_state().ready_timeout_seconds
        offset = self._ready_offsets.pop(world, 0)
        return self._server.await_ready(world, port, timeout, start_offset=offset)

    # -------------------------
    # Backups
    # -------------------------

    def create_backup(self, world: Optional[str] = None) -> BackupDescriptor:
        world = world or self.require_world()
        return self._backups.create(world)

    def list_backups(self, world: Optional[str] = None) -> List[BackupDescriptor]:
        return self._backups.list(world or self.require_world())

    def backup_pager(self, page_size: int = BACKUP_PAGE_SIZE) -> BackupPager:
        return self._backups.pager(self.require_world(), page_size)

    def restore_backup(self, backup: BackupDescriptor) -> BackupDescriptor:
        world = self.require_world()
        if backup.world != world:
            raise ValidationError(f"Backup belongs to '{backup.world}', not the selected world '{world}'.")
        snapshot = self._backups.restore(world, backup, self._server)
        self._log("[OK] World restored and server restarted.")
        return snapshot

    # -------------------------
    # Auto-backup
    # -------------------------

    def auto_backup_status(self) -> str:
        world = self.selected_world()
        return self._auto.describe(world) if world else "OFF"

    def has_auto_backup(self) -> bool:
        return self._auto.has_job(self.require_world())

    def install_auto_backup(self, interval: BackupInterval, replace: bool = False) -> None:
        self.prepare_directories()
        self._auto.install(self.require_world(), interval, replace=replace)

    def remove_auto_backup(self) -> bool:
        return self._auto.remove(self.require_world())

    # -------------------------
    # Provisioning
    # -------------------------

    def steamcmd_installed(self) -> bool:
        return self._installer.is_installed(_p(self.get_state().steamcmd_dir))

    def server_installed(self) -> bool:
        return self._installer.server_installed(_p(self.get_state().valheim_dir))

    def install_steamcmd(self, reinstall: bool = False) -> None:
        self._installer.fetch(_p(self.get_state().steamcmd_dir), reinstall=reinstall)

    def install_server(self, clean: bool = False) -> None:
        s = self.get_state()
        self._installer.update(_p(s.steamcmd_dir), s.app_id, _p(s.valheim_dir), clean=clean)

    # -------------------------
    # Display helpers
    # -------------------------

    def host_info(self) -> HostInfo:
        return HostInfo.collect()

    def header(self) -> MenuHeader:
        world = self.selected_world() or ""
        if self._wan_ip is None:
            self._wan_ip = self._net.public_ip() or "Unavailable"

        last = "No Backups Found"
        running = None
        port = None
        join_code = ""
        if world:
            running = self._server.is_running(world)
            port = self._registry.binding_port(world)
            join_code = self._server.current_join_code(world)
            latest = self._backups.latest(world)
            if latest:
                date, tm = decode_timestamp(latest.timestamp, pad_hour=True)
                last = f"{date.replace('/', '-')} {tm}"

        return MenuHeader(
            lan_ip=self._net.lan_ip() or "N/A",
            wan_ip=self._wan_ip,
            world=world,
            running=running,
            port=port,
            join_code=join_code,
            auto_backup=self.auto_backup_status(),
            last_backup=last,
        )
