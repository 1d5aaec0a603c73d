from __future__ import annotations

from typing import List

from src.server_manager_core.models import ServiceState

from .base_menu import BaseMenu, MenuAction


class ServerMenu(BaseMenu):
    MENU_TITLE = "Quick Actions"
    ORDER = 0

    def actions(self) -> List[MenuAction]:
        return [
            MenuAction("Start Server", self._start),
            MenuAction("Stop Server", self._stop),
            MenuAction("Server Status", self._status),
        ]

    def _start(self) -> None:
        if not self.require_world_or_report("start server"):
            return
        if self.controller.start_server() and self.confirm("Wait for the server to finish starting?"):
            self.show_readiness(self.controller.await_ready())

    def _stop(self) -> None:
        if not self.require_world_or_report("stop server"):
            return
        self.controller.stop_server()

    def _status(self) -> None:
        world = self.require_world_or_report("check server status")
        if not world:
            return

        status = self.controller.server_status()
        if status.state is ServiceState.NOT_FOUND:
            return
        if status.is_active:
            self.console.print(f"[green]Valheim server '{world}' is RUNNING.[/green]")
            self.console.print(f"Started at: {status.changed_at or 'n/a'}")
        else:
            self.console.print(f"[yellow]Valheim server '{world}' is STOPPED.[/yellow]")
            self.console.print(f"Stopped at: {status.changed_at or 'n/a'}")
        self.console.print(f"Last restart: {status.last_restart or 'n/a'}")
