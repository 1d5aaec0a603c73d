from __future__ import annotations

from typing import List, Optional

from rich.table import Table

from src.orchestration_core.errors import UserInputError
from src.server_manager_core.models import NewWorldRequest

from .base_menu import BaseMenu, MenuAction


class WorldMenu(BaseMenu):
    MENU_TITLE = "World Actions"
    ORDER = 10

    def actions(self) -> List[MenuAction]:
        return [
            MenuAction("List Worlds", self._list),
            MenuAction("Select World", self._select),
            MenuAction("Generate New World", self._generate),
            MenuAction("Delete World", self._delete),
        ]

    # -------------------------
    # List / select
    # -------------------------

    def _list(self) -> None:
        worlds = self.controller.list_worlds()
        if not worlds:
            self.console.print("No worlds found.")
            return

        table = Table(title="Available Worlds")
        table.add_column("World")
        table.add_column("Status")
        for w in worlds:
            name = f"{w.name} (Current)" if w.selected else w.name
            style = "green" if w.running else "yellow"
            table.add_row(name, f"[{style}]{w.status_label}[/{style}]")
        self.console.print(table)

    def _select(self) -> None:
        worlds = self.controller.list_worlds()
        for i, w in enumerate(worlds, start=1):
            self.console.print(f"{i}) {w.name}")
        cancel = len(worlds) + 1
        self.console.print(f"{cancel}) Cancel and return to menu")

        choice = self.ask("Choose an option")
        if choice == str(cancel) or not choice:
            self.console.print("[yellow]Cancelled.[/yellow]")
            return
        self.controller.select_world(choice)

    # -------------------------
    # Generate
    # -------------------------

    def _ask_port(self) -> Optional[int]:
        used = self.controller.used_ports()
        if used:
            self.console.print(f"[yellow]The following ports are already in use:[/yellow] [green]{', '.join(map(str, used))}[/green]")
        else:
            self.console.print("[yellow]No ports in use yet.[/yellow]")

        while True:
            raw = self.ask("Enter Port Number (valheim default 2456)")
            if not raw:
                return None
            try:
                port = int(raw)
            except ValueError:
                self.console.print("[red]Port must be a number.[/red]")
                continue
            if port in used:
                self.console.print(f"[red]Port {port} is already in use. Please choose a different port.[/red]")
                continue
            return port

    def _generate(self) -> None:
        self.console.print("[cyan]========== Generate a New Valheim World ==========[/cyan]")
        server_name = self.ask_required("Enter Server Name (display name in Valheim server list)", "Server name cannot be empty.")
        world_name = self.ask_required("Enter new World Name (used for save files)", "World name cannot be empty.")
        port = self._ask_port()
        password = self.ask("Enter Password (5+ characters)")
        public = self.confirm("Make server public?")

        self.console.print(
            "[yellow]WARNING: Enabling Crossplay allows Xbox/PC players to connect, "
            "but may cause server instability and crashes.[/yellow]"
        )
        self.console.print(
            "[yellow]Without crossplay, UDP ports 2456-2458 (or the port you chose) "
            "must be open on your firewall for friends to join.[/yellow]"
        )
        crossplay = self.confirm("Enable Crossplay anyway?")
        disable_raids = self.confirm("Disable monster raids?")

        req = NewWorldRequest(
            server_name=server_name,
            world_name=world_name,
            port=port,
            password=password,
            public=public,
            crossplay=crossplay,
            disable_raids=disable_raids,
        )
        spec = self.controller.generate_world(req)

        if self.confirm("Wait for the server to finish starting?", default=True):
            self.show_readiness(self.controller.await_ready(spec.world_name))

    # -------------------------
    # Delete
    # -------------------------

    def _delete(self) -> None:
        self.console.print("[red]WARNING: This will permanently delete a world and all related files.[/red]")
        worlds = self.controller.deletable_worlds()
        if not worlds:
            self.console.print("[yellow]No valid worlds found to delete.[/yellow]")
            return

        for i, name in enumerate(worlds, start=1):
            self.console.print(f"{i}) {name}")
        choice = self.ask("Enter the number of the world to delete (or 'q' to cancel)")
        if choice.lower() == "q" or not choice:
            self.console.print("[cyan]Deletion canceled by user.[/cyan]")
            return
        if not choice.isdigit() or not 1 <= int(choice) <= len(worlds):
            raise UserInputError("Invalid selection.")

        name = worlds[int(choice) - 1]
        if not self.confirm(f"Are you absolutely sure you want to delete world '{name}' and all related files?"):
            self.console.print("[cyan]Deletion canceled.[/cyan]")
            return
        self.controller.delete_world(name)
