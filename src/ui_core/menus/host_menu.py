from __future__ import annotations

from typing import List

from rich.table import Table

from .base_menu import BaseMenu, MenuAction


class HostMenu(BaseMenu):
    MENU_TITLE = "Server Info"
    ORDER = 40

    def actions(self) -> List[MenuAction]:
        return [MenuAction("View Server Info", self._show)]

    def _show(self) -> None:
        info = self.controller.host_info()
        table = Table(title="System Information", show_header=False)
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        table.add_row("Hostname", info.hostname)
        table.add_row("OS / Kernel", info.kernel)
        table.add_row("CPU", info.cpu_model)
        table.add_row("Memory", info.total_memory)
        table.add_row("Disk (/)", info.disk_usage)
        table.add_row("Uptime", info.uptime)
        self.console.print(table)
