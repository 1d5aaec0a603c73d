from __future__ import annotations

import re
import time
from pathlib import Path
from typing import Callable, Optional

from .constants import READY_TIMEOUT_SECONDS
from .errors import NotFoundError
from .models import ReadinessReport, ServiceState, ServiceStatus
from .network_client import NetworkClient
from .retry import RetryPolicy, poll_until
from .unit_files import server_unit_name
from .world_registry import server_log_name

JOIN_CODE_RE = re.compile(r"registered with join code (\d+)")
STEAM_OPEN_MARKER = "Opened Steam server"
# The header only needs the newest join code, which is always near the end of the log.
JOIN_TAIL_BYTES = 64 * 1024


class ServiceController:
    """
    Drives one world's server unit through the supervisor.

    State changes are only observable by asking systemd again, so start/stop
    poll with a bounded RetryPolicy. Running out of attempts is a warning, not
    an error: Valheim is often just slow to come up or shut down.
    """

    def __init__(
        self,
        supervisor,
        log_fn: Callable[[str], None],
        *,
        log_dir: Optional[Path] = None,
        policy: RetryPolicy = RetryPolicy(),
        network: Optional[NetworkClient] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._supervisor = supervisor
        self._log = log_fn
        self._log_dir = Path(log_dir) if log_dir else None
        self._policy = policy
        self._net = network or NetworkClient(log_fn)
        self._sleep = sleep

    # -------------------------
    # Lifecycle
    # -------------------------

    def has_binding(self, world: str) -> bool:
        return self._supervisor.exists(server_unit_name(world))

    def _require_binding(self, world: str) -> str:
        unit = server_unit_name(world)
        if not self._supervisor.exists(unit):
            raise NotFoundError(f"Systemd service '{unit}' not found.")
        return unit

    def start(self, world: str) -> bool:
        unit = self._require_binding(world)
        self._log(f"[SYS] Starting Valheim server for world: {world}")
        self._supervisor.start(unit)

        if poll_until(lambda: self._supervisor.is_active(unit), self._policy, self._sleep):
            self._log(f"[OK] Service '{unit}' is now active.")
            return True
        self._log(
            f"[WARN] Service '{unit}' did not become active after {self._policy.attempts} checks. "
            "You may want to check status manually."
        )
        return False

    def stop(self, world: str) -> bool:
        unit = self._require_binding(world)
        self._log(f"[SYS] Stopping Valheim server for world: {world}")
        self._supervisor.stop(unit)

        if poll_until(lambda: not self._supervisor.is_active(unit), self._policy, self._sleep):
            self._log(f"[OK] Service '{unit}' is now fully stopped.")
            return True
        self._log(
            f"[WARN] Service '{unit}' is still running after {self._policy.attempts} checks. "
            "You may want to check manually."
        )
        return False

    def is_running(self, world: str) -> bool:
        return self._supervisor.is_active(server_unit_name(world))

    def status(self, world: str) -> ServiceStatus:
        unit = server_unit_name(world)

        # A freshly written unit may not be indexed by systemd yet.
        if not poll_until(lambda: self._supervisor.exists(unit), self._policy, self._sleep):
            self._log(f"[ERROR] Systemd service '{unit}' not found after multiple checks.")
            return ServiceStatus(world=world, state=ServiceState.NOT_FOUND)

        last_restart = self._supervisor.show_timestamp(unit, "ExecMainStartTimestamp")
        if self._supervisor.is_active(unit):
            return ServiceStatus(
                world=world,
                state=ServiceState.ACTIVE,
                changed_at=self._supervisor.show_timestamp(unit, "ActiveEnterTimestamp"),
                last_restart=last_restart,
            )
        return ServiceStatus(
            world=world,
            state=ServiceState.INACTIVE,
            changed_at=self._supervisor.show_timestamp(unit, "InactiveEnterTimestamp"),
            last_restart=last_restart,
        )

    # -------------------------
    # Readiness (server log)
    # -------------------------

    def log_path(self, world: str) -> Optional[Path]:
        if self._log_dir is None:
            return None
        return self._log_dir / server_log_name(world)

    def log_offset(self, world: str) -> int:
        """Current size of the server log; pass to await_ready to ignore older runs."""
        path = self.log_path(world)
        try:
            return path.stat().st_size if path else 0
        except FileNotFoundError:
            return 0

    def _read_log(self, world: str, offset: int = 0) -> str:
        path = self.log_path(world)
        if path is None:
            return ""
        try:
            with path.open("rb") as fh:
                fh.seek(offset)
                return fh.read().decode("utf-8", errors="replace")
        except FileNotFoundError:
            return ""

    def current_join_code(self, world: str) -> str:
        start = max(0, self.log_offset(world) - JOIN_TAIL_BYTES)
        codes = JOIN_CODE_RE.findall(self._read_log(world, start))
        return codes[-1] if codes else ""

    def await_ready(
        self,
        world: str,
        port: int,
        timeout_seconds: float = READY_TIMEOUT_SECONDS,
        *,
        start_offset: int = 0,
    ) -> ReadinessReport:
        """
        Watch the server log for a join code (crossplay) or the Steam-open line.
        A timeout is not a failure: the report falls back to LAN/WAN addresses
        so the operator can connect by IP.
        """
        self._log(f"[INFO] Waiting for server '{world}' to become joinable (up to {int(timeout_seconds) // 60} min)...")
        found: dict = {}

        def check() -> bool:
            text = self._read_log(world, start_offset)
            codes = JOIN_CODE_RE.findall(text)
            if codes:
                found["mode"], found["code"] = "crossplay", codes[-1]
                return True
            if STEAM_OPEN_MARKER in text:
                found["mode"] = "steam"
                return True
            return False

        policy = RetryPolicy.for_timeout(timeout_seconds, self._policy.delay_seconds or 1.0)
        if poll_until(check, policy, self._sleep):
            if found["mode"] == "crossplay":
                self._log(f"[OK] Server is ready! Join code: {found['code']}")
                return ReadinessReport(mode="crossplay", join_code=found["code"])
            self._log("[OK] Server is ready! Steam-only mode.")
            return ReadinessReport(mode="steam", **self._addresses(port))

        self._log("[WARN] No join code or Steam-server line seen. Falling back to IP info.")
        return ReadinessReport(mode="fallback", **self._addresses(port))

    def _addresses(self, port: int) -> dict:
        lan = self._net.lan_ip() or "N/A"
        wan = self._net.public_ip() or "N/A"
        return {"lan_address": f"{lan}:{port}", "wan_address": f"{wan}:{port}"}
