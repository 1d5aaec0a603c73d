from __future__ import annotations

from typing import List

from .base_menu import BaseMenu, MenuAction


class SteamMenu(BaseMenu):
    MENU_TITLE = "Steam Actions"
    ORDER = 30

    def actions(self) -> List[MenuAction]:
        return [
            MenuAction("Install / Update SteamCMD", self._steamcmd),
            MenuAction("Install / Update Valheim Server", self._valheim),
        ]

    def _steamcmd(self) -> None:
        if not self.controller.steamcmd_installed():
            self.controller.install_steamcmd()
            return

        self.console.print("[yellow]SteamCMD is already installed.[/yellow]")
        self.console.print("1) Update SteamCMD")
        self.console.print("2) Reinstall SteamCMD")
        self.console.print("3) Cancel")
        choice = self.ask("Choose an option")
        if choice == "1":
            self.controller.install_steamcmd(reinstall=False)
        elif choice == "2":
            self.controller.install_steamcmd(reinstall=True)
        else:
            self.console.print("[cyan]Cancelled.[/cyan]")

    def _valheim(self) -> None:
        if not self.controller.steamcmd_installed():
            self.console.print("[red]ERROR: SteamCMD is not installed. Install it first.[/red]")
            return

        if not self.controller.server_installed():
            self.controller.install_server()
            return

        self.console.print("[yellow]Valheim server is already installed.[/yellow]")
        self.console.print("1) Reinstall Valheim Server")
        self.console.print("2) Update Valheim Server")
        self.console.print("3) Cancel")
        choice = self.ask("Choose an option")
        if choice == "1":
            if self.confirm("Reinstall removes server files (world data is kept). Continue?"):
                self.controller.install_server(clean=True)
        elif choice == "2":
            self.controller.install_server(clean=False)
        else:
            self.console.print("[cyan]Cancelled.[/cyan]")
