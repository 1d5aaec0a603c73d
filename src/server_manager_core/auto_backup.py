from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from .errors import ExternalToolFailure, JobExistsError
from .models import BackupInterval
from .unit_files import (
    backup_script_name,
    backup_service_name,
    backup_timer_name,
    parse_on_calendar,
    parse_timer_interval,
    render_backup_script,
    render_backup_service,
    render_backup_timer,
)


class AutoBackupScheduler:
    """
    One systemd timer per world firing a oneshot service that runs a small
    per-world script. The timer file is the only record of the interval.
    """

    def __init__(
        self,
        supervisor,
        scripts_dir: Path,
        log_fn: Callable[[str], None],
        *,
        python: str,
        app_root: Path,
        config_path: Path,
        user: str = "",
    ):
        self._supervisor = supervisor
        self.scripts_dir = Path(scripts_dir)
        self._log = log_fn
        self._python = python
        self._app_root = Path(app_root)
        self._config_path = Path(config_path)
        self._user = user

    def script_path(self, world: str) -> Path:
        return self.scripts_dir / backup_script_name(world)

    # -------------------------
    # Queries
    # -------------------------

    def has_job(self, world: str) -> bool:
        return self._supervisor.has_definition(backup_timer_name(world))

    def status(self, world: str) -> Optional[BackupInterval]:
        """Interval read back from the timer; None when off or unrecognised."""
        text = self._supervisor.read(backup_timer_name(world))
        return parse_timer_interval(text) if text else None

    def describe(self, world: str) -> str:
        if not self.has_job(world):
            return "OFF"
        interval = self.status(world)
        return f"ON ({interval.label if interval else 'Unknown Interval'})"

    def on_calendar(self, world: str) -> str:
        return parse_on_calendar(self._supervisor.read(backup_timer_name(world)))

    # -------------------------
    # Install / remove
    # -------------------------

    def _write_script(self, world: str) -> Path:
        path = self.script_path(world)
        if path.exists():
            self._log(f"[INFO] Backup script for '{world}' already exists. Skipping script creation.")
            return path

        self._log(f"[INFO] Creating dedicated backup script for '{world}'...")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            render_backup_script(world, self._python, str(self._app_root), str(self._config_path)),
            encoding="utf-8",
        )
        path.chmod(0o755)
        return path

    def install(self, world: str, interval: BackupInterval, replace: bool = False) -> None:
        timer = backup_timer_name(world)
        service = backup_service_name(world)

        if self.has_job(world):
            if not replace:
                raise JobExistsError(f"Auto-backup for world '{world}' is already enabled.")
            self._log(f"[INFO] Changing auto-backup interval for '{world}'...")
            self._best_effort(self._supervisor.disable, timer, now=True)
            self._best_effort(self._supervisor.undefine, timer)

        script = self._write_script(world)
        self._supervisor.define(service, render_backup_service(world, str(script), str(self.scripts_dir), self._user))
        self._supervisor.define(timer, render_backup_timer(world, interval))
        self._supervisor.reload()
        self._supervisor.enable(timer, now=True)
        self._log(f"[OK] Auto-backup for '{world}' set to: {interval.label}.")

    def remove(self, world: str) -> bool:
        timer = backup_timer_name(world)
        if not self.has_job(world):
            self._log(f"[INFO] No auto-backup is configured for world '{world}'.")
            return False

        self._log("[INFO] Stopping and disabling timer...")
        self._best_effort(self._supervisor.stop, timer)
        self._best_effort(self._supervisor.disable, timer)
        self._best_effort(self._supervisor.undefine, timer)
        self._best_effort(self._supervisor.undefine, backup_service_name(world))
        self.script_path(world).unlink(missing_ok=True)

        self._best_effort(self._supervisor.reload)
        self._best_effort(self._supervisor.remove_failed_record)
        self._log(f"[OK] Auto-backup for world '{world}' has been fully removed.")
        return True

    def _best_effort(self, action, *args, **kwargs) -> None:
        """Run one teardown step; a systemctl failure is logged and skipped."""
        try:
            action(*args, **kwargs)
        except ExternalToolFailure as e:
            self._log(f"[WARN] {e}")
