from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Callable, List, Optional

from .errors import ExternalToolFailure


class SystemdSupervisor:
    """
    Thin systemctl adapter.

    Unit definitions are plain files in units_dir. Writes and systemctl calls
    go through sudo unless we are already root.
    """

    def __init__(
        self,
        units_dir: Path,
        log_fn: Callable[[str], None],
        *,
        use_sudo: Optional[bool] = None,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ):
        self.units_dir = Path(units_dir).expanduser()
        self._log = log_fn
        self._run = runner
        if use_sudo is None:
            use_sudo = hasattr(os, "geteuid") and os.geteuid() != 0
        self.use_sudo = use_sudo

    # -------------------------
    # Process plumbing
    # -------------------------

    def _cmd(self, args: List[str]) -> List[str]:
        return (["sudo"] + args) if self.use_sudo else args

    def _exec(self, args: List[str], *, check: bool = True, input_text: Optional[str] = None) -> subprocess.CompletedProcess:
        cmd = self._cmd(args)
        try:
            result = self._run(cmd, input=input_text, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise ExternalToolFailure(f"Command not available: {cmd[0]}", str(e)) from e
        if check and result.returncode != 0:
            raise ExternalToolFailure(f"'{' '.join(cmd)}' failed ({result.returncode})", result.stderr or "")
        return result

    def _systemctl(self, *args: str, check: bool = True) -> subprocess.CompletedProcess:
        return self._exec(["systemctl", *args], check=check)

    # -------------------------
    # Definitions
    # -------------------------

    def unit_path(self, name: str) -> Path:
        return self.units_dir / name

    def define(self, name: str, text: str) -> Path:
        path = self.unit_path(name)
        if self.use_sudo:
            self._exec(["tee", str(path)], input_text=text)
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        self._log(f"[SYS] Wrote unit {path}")
        return path

    def undefine(self, name: str) -> None:
        path = self.unit_path(name)
        if self.use_sudo:
            self._exec(["rm", "-f", str(path)])
        else:
            path.unlink(missing_ok=True)

    def has_definition(self, name: str) -> bool:
        return self.unit_path(name).is_file()

    def read(self, name: str) -> str:
        path = self.unit_path(name)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""

    def list_definitions(self, pattern: str) -> List[str]:
        if not self.units_dir.is_dir():
            return []
        return sorted(p.name for p in self.units_dir.glob(pattern) if p.is_file())

    # -------------------------
    # Lifecycle
    # -------------------------

    def reload(self) -> None:
        self._systemctl("daemon-reload")

    def remove_failed_record(self) -> None:
        self._systemctl("reset-failed", check=False)

    def enable(self, name: str, now: bool = False) -> None:
        self._systemctl("enable", *(["--now"] if now else []), name)

    def disable(self, name: str, now: bool = False) -> None:
        self._systemctl("disable", *(["--now"] if now else []), name)

    def start(self, name: str) -> None:
        self._systemctl("start", name)

    def stop(self, name: str) -> None:
        self._systemctl("stop", name)

    # -------------------------
    # Queries (never sudo; read-only)
    # -------------------------

    def _query(self, *args: str) -> subprocess.CompletedProcess:
        try:
            return self._run(["systemctl", *args], capture_output=True, text=True)
        except FileNotFoundError as e:
            raise ExternalToolFailure("Command not available: systemctl", str(e)) from e

    def is_active(self, name: str) -> bool:
        return self._query("is-active", "--quiet", name).returncode == 0

    def exists(self, name: str) -> bool:
        result = self._query("list-unit-files", "--no-legend", name)
        return any(line.split()[:1] == [name] for line in (result.stdout or "").splitlines())

    def show_timestamp(self, name: str, field: str) -> str:
        result = self._query("show", name, "-p", field, "--value")
        return (result.stdout or "").strip()
