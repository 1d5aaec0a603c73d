from __future__ import annotations

import re
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Union

from .backup_names import BackupKind, backup_glob, parse_backup_name
from .constants import (
    DEFAULT_PORT,
    RESERVED_NAME_MARKERS,
    SERVER_UNIT_PREFIX,
    WORLD_DB_EXT,
    WORLD_META_EXT,
)
from .errors import (
    AlreadyExistsError,
    ExternalToolFailure,
    NotFoundError,
    PortInUseError,
    UserInputError,
)
from .models import World
from .session_store import SessionStore
from .supervisor import SystemdSupervisor
from .unit_files import (
    backup_script_name,
    backup_service_name,
    backup_timer_name,
    parse_binding,
    server_unit_name,
)

_SAFE_NAME = re.compile(r"[A-Za-z0-9][A-Za-z0-9_.-]{0,63}")


def is_reserved_name(name: str) -> bool:
    lowered = name.lower()
    return any(marker in lowered for marker in RESERVED_NAME_MARKERS)


def server_log_name(world: str) -> str:
    return f"{world}_server.log"


class WorldRegistry:
    """
    Worlds are the <name>.db / <name>.fwl pairs in world_dir.

    Nothing is cached: the server process and the operator can both change
    world_dir behind our back, so every call re-scans.
    """

    def __init__(
        self,
        world_dir: Path,
        supervisor: SystemdSupervisor,
        session: SessionStore,
        log_fn: Callable[[str], None],
        *,
        backup_dir: Optional[Path] = None,
        log_dir: Optional[Path] = None,
        scripts_dir: Optional[Path] = None,
    ):
        self.world_dir = Path(world_dir)
        self.supervisor = supervisor
        self.session = session
        self.log = log_fn
        self.backup_dir = Path(backup_dir) if backup_dir else None
        self.log_dir = Path(log_dir) if log_dir else None
        self.scripts_dir = Path(scripts_dir) if scripts_dir else None

    # -------------------------
    # Listing / selection
    # -------------------------

    def _scan_names(self) -> List[str]:
        if not self.world_dir.is_dir():
            return []
        names = []
        for p in self.world_dir.glob(f"*{WORLD_DB_EXT}"):
            if not p.is_file() or is_reserved_name(p.name):
                continue
            names.append(p.name[: -len(WORLD_DB_EXT)])
        return sorted(names)

    def list(self) -> Iterator[World]:
        selected = self.session.get()
        for name in self._scan_names():
            yield World(
                name=name,
                running=self.supervisor.is_active(server_unit_name(name)),
                selected=(name == selected),
            )

    def list_valid(self) -> List[str]:
        """Names with both save files present."""
        return [n for n in self._scan_names() if self.is_valid(n)]

    def is_valid(self, name: str) -> bool:
        return (
            (self.world_dir / f"{name}{WORLD_DB_EXT}").is_file()
            and (self.world_dir / f"{name}{WORLD_META_EXT}").is_file()
        )

    def select(self, choice: Union[int, str]) -> World:
        worlds = list(self.list())
        try:
            index = int(str(choice).strip())
        except ValueError:
            raise UserInputError(f"Not a number: {choice!r}")
        if not 1 <= index <= len(worlds):
            raise UserInputError(f"Choice {index} is out of range (1-{len(worlds)}).")

        world = worlds[index - 1]
        self.session.set(world.name)
        self.log(f"[OK] World '{world.name}' selected.")
        return World(name=world.name, running=world.running, selected=True)

    # -------------------------
    # New world checks
    # -------------------------

    def validate_new_name(self, name: str) -> None:
        name = (name or "").strip()
        if not name:
            raise UserInputError("World name cannot be empty.")
        if not _SAFE_NAME.fullmatch(name):
            raise UserInputError(
                "World name may only use letters, digits, '_', '-' and '.', and must start with a letter or digit."
            )
        if is_reserved_name(name):
            raise UserInputError("World names containing 'backup', 'bak' or 'copy' are reserved.")
        for ext in (WORLD_DB_EXT, WORLD_META_EXT):
            if (self.world_dir / f"{name}{ext}").exists():
                raise AlreadyExistsError(f"A world with the name '{name}' already exists.")
        if self.supervisor.has_definition(server_unit_name(name)):
            raise AlreadyExistsError(f"A server config for world '{name}' already exists.")

    def used_ports(self) -> List[int]:
        ports = set()
        for unit in self.supervisor.list_definitions(f"{SERVER_UNIT_PREFIX}*.service"):
            parsed = parse_binding(self.supervisor.read(unit))
            if parsed and parsed.port is not None:
                ports.add(parsed.port)
        return sorted(ports)

    def binding_port(self, name: str) -> Optional[int]:
        parsed = parse_binding(self.supervisor.read(server_unit_name(name)))
        return parsed.port if parsed else None

    def allocate_port(self, requested: Union[int, str, None] = None) -> int:
        if requested is None or str(requested).strip() == "":
            port = DEFAULT_PORT
        else:
            try:
                port = int(str(requested).strip())
            except ValueError:
                raise UserInputError(f"Port must be a number: {requested!r}")
        if not 1 <= port <= 65535:
            raise UserInputError(f"Port out of range: {port}")
        if port in self.used_ports():
            raise PortInUseError(f"Port {port} is already in use. Please choose a different port.")
        return port

    # -------------------------
    # Deletion
    # -------------------------

    def _artifacts(self, name: str) -> List[Path]:
        paths = [
            self.world_dir / f"{name}{WORLD_DB_EXT}",
            self.world_dir / f"{name}{WORLD_META_EXT}",
            self.world_dir / f"{name}{WORLD_DB_EXT}.old",
            self.world_dir / f"{name}{WORLD_META_EXT}.old",
        ]
        if self.world_dir.is_dir():
            paths += sorted(self.world_dir.glob(f"{name}_backup_auto-*{WORLD_DB_EXT}"))
            paths += sorted(self.world_dir.glob(f"{name}_backup_auto-*{WORLD_META_EXT}"))
        if self.log_dir:
            paths.append(self.log_dir / server_log_name(name))
        if self.scripts_dir:
            paths.append(self.scripts_dir / backup_script_name(name))
        if self.backup_dir and self.backup_dir.is_dir():
            for kind in BackupKind:
                paths += sorted(
                    p for p in self.backup_dir.glob(backup_glob(name, kind))
                    if parse_backup_name(p.name, world=name)
                )
        return [p for p in paths if p.exists()]

    def _units(self, name: str) -> List[str]:
        return [
            u for u in (server_unit_name(name), backup_timer_name(name), backup_service_name(name))
            if self.supervisor.has_definition(u)
        ]

    def delete(self, name: str) -> None:
        units = self._units(name)
        files = self._artifacts(name)
        if not units and not files:
            raise NotFoundError(f"No world or related files found for '{name}'.")

        # Units first so the server stops writing save files before we remove them.
        for unit in units:
            for action in (self.supervisor.stop, self.supervisor.disable, self.supervisor.undefine):
                try:
                    action(unit)
                except ExternalToolFailure as e:
                    self.log(f"[WARN] {e}")

        for path in files:
            path.unlink(missing_ok=True)

        try:
            self.supervisor.reload()
        except ExternalToolFailure as e:
            self.log(f"[WARN] {e}")

        if self.session.get() == name:
            self.session.clear()
            self.log(f"[WARN] Current world '{name}' was selected and has been cleared.")

        self.log(f"[OK] World '{name}' and all related files have been deleted.")
