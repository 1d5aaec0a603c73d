"""
Pure text rendering/parsing for the systemd units this manager owns.

Nothing here touches the filesystem or systemctl; the supervisor adapter
writes whatever these functions return.
"""
from __future__ import annotations

import re
import shlex
from dataclasses import dataclass
from typing import Optional

from .constants import BACKUP_UNIT_PREFIX, SERVER_BINARY, SERVER_UNIT_PREFIX
from .models import BackupInterval, ServiceBindingSpec


# -------------------------
# Unit names
# -------------------------

def server_unit_name(world: str) -> str:
    return f"{SERVER_UNIT_PREFIX}{world}.service"


def backup_service_name(world: str) -> str:
    return f"{BACKUP_UNIT_PREFIX}{world}.service"


def backup_timer_name(world: str) -> str:
    return f"{BACKUP_UNIT_PREFIX}{world}.timer"


def backup_script_name(world: str) -> str:
    return f"backup_{world}.sh"


# -------------------------
# Server binding
# -------------------------

def _systemd_quote(value: str) -> str:
    escaped = (
        str(value)
        .replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("%", "%%")
        .replace("$", "$$")
    )
    return f'"{escaped}"'


def _systemd_unescape(value: str) -> str:
    return value.replace("%%", "%").replace("$$", "$")


def launch_flags(spec: ServiceBindingSpec) -> str:
    parts = [
        "-nographics",
        "-batchmode",
        "-name", _systemd_quote(spec.server_name),
        "-port", str(int(spec.port)),
        "-world", _systemd_quote(spec.world_name),
        "-password", _systemd_quote(spec.password),
        "-public", "1" if spec.public else "0",
    ]
    if spec.crossplay:
        parts.append("-crossplay")
    if spec.disable_raids:
        parts += ["-Modifiers", "Raids", "none"]
    parts += ["-savedir", _systemd_quote(spec.save_dir)]
    return " ".join(parts)


def render_server_unit(spec: ServiceBindingSpec) -> str:
    install_dir = spec.install_dir.rstrip("/")
    lines = [
        "[Unit]",
        f"Description=Valheim Dedicated Server - {spec.world_name}",
        "Wants=network-online.target",
        "After=network-online.target",
        "",
        "[Service]",
        f"Environment=SteamAppId={spec.steam_app_id}",
        f"Environment=LD_LIBRARY_PATH={install_dir}/linux64",
        f"WorkingDirectory={install_dir}",
        f"ExecStart={install_dir}/{SERVER_BINARY} {launch_flags(spec)}",
        f"Restart={spec.restart_policy}",
        f"RestartSec={spec.restart_sec}",
        "KillSignal=SIGINT",
    ]
    if spec.user:
        lines += [f"User={spec.user}", f"Group={spec.user}"]
    lines += [
        "Type=simple",
        f"StandardOutput=append:{spec.log_path}",
        f"StandardError=append:{spec.log_path}",
        "TimeoutStartSec=0",
        "",
        "[Install]",
        "WantedBy=multi-user.target",
        "",
    ]
    return "\n".join(lines)


@dataclass(frozen=True)
class ParsedBinding:
    world_name: str
    server_name: str
    port: Optional[int]
    crossplay: bool
    public: bool


# Number of values each launch flag consumes; everything else is a bare switch.
_FLAG_ARITY = {
    "-name": 1,
    "-port": 1,
    "-world": 1,
    "-password": 1,
    "-public": 1,
    "-savedir": 1,
    "-Modifiers": 2,
}


def parse_binding(text: str) -> Optional[ParsedBinding]:
    """
    Pull name, world and port back out of a rendered server unit.

    The ExecStart line is tokenised the way systemd splits it, so a quoted
    server name that happens to contain "-port 1" stays a single value.
    """
    m = re.search(r"^ExecStart=(.*)$", text, re.MULTILINE)
    if not m:
        return None
    try:
        tokens = shlex.split(m.group(1))
    except ValueError:
        return None

    values = {}
    crossplay = False
    i = 1
    while i < len(tokens):
        token = tokens[i]
        width = _FLAG_ARITY.get(token, 0)
        if token == "-crossplay":
            crossplay = True
        elif width and i + width < len(tokens):
            values.setdefault(token, _systemd_unescape(tokens[i + 1]))
        i += 1 + width

    port = values.get("-port", "")
    return ParsedBinding(
        world_name=values.get("-world", ""),
        server_name=values.get("-name", ""),
        port=int(port) if port.isdigit() else None,
        crossplay=crossplay,
        public=values.get("-public") == "1",
    )


# -------------------------
# Auto-backup job
# -------------------------

def render_backup_script(world: str, python: str, app_root: str, config_path: str) -> str:
    return "\n".join([
        "#!/bin/bash",
        f"# Unattended backup for world {world}",
        f"cd {shlex.quote(app_root)} || exit 1",
        f"exec {shlex.quote(python)} -m src.app --config {shlex.quote(config_path)} backup {shlex.quote(world)}",
        "",
    ])


def render_backup_service(world: str, script_path: str, workdir: str, user: str = "") -> str:
    lines = [
        "[Unit]",
        f"Description=Valheim Auto Backup Service for {world}",
        "Wants=network-online.target",
        "After=network-online.target",
        "",
        "[Service]",
        "Type=oneshot",
    ]
    if user:
        lines += [f"User={user}", f"Group={user}"]
    lines += [
        f"WorkingDirectory={workdir}",
        f"ExecStart={script_path}",
        "",
    ]
    return "\n".join(lines)


def render_backup_timer(world: str, interval: BackupInterval, persistent: bool = True) -> str:
    return "\n".join([
        "[Unit]",
        f"Description=Valheim Auto Backup Timer for {world}",
        "",
        "[Timer]",
        f"OnCalendar={interval.on_calendar}",
        f"Persistent={'true' if persistent else 'false'}",
        "",
        "[Install]",
        "WantedBy=timers.target",
        "",
    ])


def parse_on_calendar(text: str) -> str:
    m = re.search(r"^OnCalendar=(.*)$", text, re.MULTILINE)
    return m.group(1).strip() if m else ""


def parse_timer_interval(text: str) -> Optional[BackupInterval]:
    return BackupInterval.from_on_calendar(parse_on_calendar(text))
