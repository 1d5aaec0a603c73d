from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Callable, List, Optional

from .archive_tool import TarArchiveTool
from .constants import SERVER_BINARY, STEAMCMD_SCRIPT, STEAMCMD_URL
from .errors import ExternalToolFailure
from .network_client import NetworkClient


class SteamCmdInstaller:
    """Fetches SteamCMD and uses it to install/update the dedicated server."""

    KEEP_ON_REINSTALL = "valheim_data"

    def __init__(
        self,
        log_fn: Callable[[str], None],
        *,
        network: Optional[NetworkClient] = None,
        archive: Optional[TarArchiveTool] = None,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ):
        self.log = log_fn
        self._net = network or NetworkClient(log_fn)
        self._archive = archive or TarArchiveTool(log_fn)
        self._run = runner

    @staticmethod
    def is_installed(steamcmd_dir: Path) -> bool:
        return (Path(steamcmd_dir).expanduser() / STEAMCMD_SCRIPT).is_file()

    @staticmethod
    def server_installed(install_dir: Path) -> bool:
        return (Path(install_dir).expanduser() / SERVER_BINARY).is_file()

    def _steamcmd(self, steamcmd_dir: Path, args: List[str]) -> None:
        cmd = [str(Path(steamcmd_dir) / STEAMCMD_SCRIPT), *args]
        self.log(f"[SYS] Running: {' '.join(cmd)}")
        try:
            result = self._run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise ExternalToolFailure("SteamCMD could not be launched", str(e)) from e
        if result.returncode != 0:
            raise ExternalToolFailure(f"SteamCMD exited with {result.returncode}", result.stderr or result.stdout or "")

    def fetch(self, steamcmd_dir: Path, reinstall: bool = False) -> Path:
        steamcmd_dir = Path(steamcmd_dir).expanduser()

        if self.is_installed(steamcmd_dir) and not reinstall:
            self.log("[INFO] Running SteamCMD self-update...")
            self._steamcmd(steamcmd_dir, ["+quit"])
            self.log("[OK] SteamCMD self-update completed.")
            return steamcmd_dir

        if reinstall and steamcmd_dir.exists():
            self.log(f"[WARN] Removing existing SteamCMD at {steamcmd_dir}")
            shutil.rmtree(steamcmd_dir)

        steamcmd_dir.mkdir(parents=True, exist_ok=True)
        tarball = steamcmd_dir / "steamcmd_linux.tar.gz"
        if not self._net.download_file(STEAMCMD_URL, str(tarball)):
            raise ExternalToolFailure("SteamCMD download failed")

        try:
            self._archive.extract(tarball, steamcmd_dir)
        finally:
            tarball.unlink(missing_ok=True)

        if not self.is_installed(steamcmd_dir):
            raise ExternalToolFailure(f"SteamCMD installation failed; {STEAMCMD_SCRIPT} missing in {steamcmd_dir}")
        self.log(f"[OK] SteamCMD installed at {steamcmd_dir}.")
        return steamcmd_dir

    def update(self, steamcmd_dir: Path, app_id: int, install_dir: Path, clean: bool = False) -> Path:
        steamcmd_dir = Path(steamcmd_dir).expanduser()
        install_dir = Path(install_dir).expanduser()

        if not self.is_installed(steamcmd_dir):
            raise ExternalToolFailure("SteamCMD is not installed! Please install SteamCMD first.")

        if clean and install_dir.exists():
            self.log("[WARN] Full reinstall: clearing server files (keeping world data)...")
            for child in install_dir.iterdir():
                if child.name == self.KEEP_ON_REINSTALL:
                    continue
                if child.is_dir() and not child.is_symlink():
                    shutil.rmtree(child)
                else:
                    child.unlink()

        install_dir.mkdir(parents=True, exist_ok=True)
        self._steamcmd(steamcmd_dir, [
            "+@sSteamCmdForcePlatformType", "linux",
            "+force_install_dir", str(install_dir),
            "+login", "anonymous",
            "+app_update", str(app_id), "validate",
            "+quit",
        ])

        if not self.server_installed(install_dir):
            raise ExternalToolFailure("Valheim server installation failed. Please check SteamCMD logs.")
        self.log("[OK] Valheim server installed/updated successfully!")
        return install_dir
