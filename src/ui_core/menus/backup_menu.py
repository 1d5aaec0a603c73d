from __future__ import annotations

from typing import List, Optional

from src.orchestration_core.errors import UserInputError
from src.server_manager_core.backup_names import BackupDescriptor
from src.server_manager_core.models import BackupInterval

from .base_menu import BaseMenu, MenuAction

_INTERVALS = [BackupInterval.EVERY_30_MINUTES, BackupInterval.HOURLY, BackupInterval.EVERY_3_HOURS]


class BackupMenu(BaseMenu):
    MENU_TITLE = "Backup Actions"
    ORDER = 20

    def actions(self) -> List[MenuAction]:
        return [
            MenuAction("Backup World", self._backup),
            MenuAction("Restore Backup", self._restore),
            MenuAction("Enable / Edit Auto Backup", self._enable_auto),
            MenuAction("Disable Auto Backup", self._disable_auto),
        ]

    # -------------------------
    # Manual backup / restore
    # -------------------------

    def _backup(self) -> None:
        if not self.require_world_or_report("create backup"):
            return
        self.controller.create_backup()

    def _pick_backup(self) -> Optional[BackupDescriptor]:
        pager = self.controller.backup_pager()
        if not pager.items:
            self.console.print(f"[red]ERROR: No backups found for world '{self.controller.selected_world()}'.[/red]")
            return None

        page = 1
        while True:
            shown = pager.up_to(page)
            self.console.print("[cyan]Available Backups:[/cyan]")
            for i, b in enumerate(shown, start=1):
                self.console.print(f"{i}) {b.world} - {b.date_display} {b.time_display}")

            load_more = None
            if pager.has_more(page):
                load_more = len(shown) + 1
                self.console.print(f"{load_more}) Load more backups")

            choice = self.ask("Enter the number of the backup to restore (or 'q' to cancel)")
            if choice.lower() == "q" or not choice:
                self.console.print("[cyan]Restore canceled by user.[/cyan]")
                return None
            if load_more is not None and choice == str(load_more):
                page += 1
                continue
            if choice.isdigit() and 1 <= int(choice) <= len(shown):
                return shown[int(choice) - 1]
            self.console.print("[red]Invalid selection. Please try again.[/red]")

    def _restore(self) -> None:
        if not self.require_world_or_report("restore backup"):
            return

        backup = self._pick_backup()
        if backup is None:
            return

        self.console.print(f"[yellow]Selected: {backup.filename}[/yellow]")
        if not self.confirm("Are you sure you want to restore this backup? This will overwrite current world files"):
            self.console.print("[cyan]Restore canceled.[/cyan]")
            return
        self.controller.restore_backup(backup)

    # -------------------------
    # Auto-backup
    # -------------------------

    def _ask_interval(self) -> Optional[BackupInterval]:
        self.console.print("[cyan]Choose backup interval:[/cyan]")
        for i, interval in enumerate(_INTERVALS, start=1):
            self.console.print(f"{i}) {interval.label}")
        cancel = len(_INTERVALS) + 1
        self.console.print(f"{cancel}) Cancel")

        choice = self.ask("Choose an option")
        if choice == str(cancel):
            self.console.print("[cyan]Auto-backup setup canceled.[/cyan]")
            return None
        if choice.isdigit() and 1 <= int(choice) <= len(_INTERVALS):
            return _INTERVALS[int(choice) - 1]
        raise UserInputError("Invalid option. Auto-backup setup canceled.")

    def _enable_auto(self) -> None:
        world = self.require_world_or_report("enable auto backup")
        if not world:
            return

        replace = False
        if self.controller.has_auto_backup():
            self.console.print(f"[yellow]Auto-backup is already enabled for '{world}': {self.controller.auto_backup_status()}[/yellow]")
            self.console.print("1) Change interval")
            self.console.print("2) Cancel")
            if self.ask("Choose an option") != "1":
                self.console.print("[cyan]Auto-backup unchanged.[/cyan]")
                return
            replace = True

        interval = self._ask_interval()
        if interval is None:
            return
        self.controller.install_auto_backup(interval, replace=replace)

    def _disable_auto(self) -> None:
        world = self.require_world_or_report("disable auto backup")
        if not world:
            return
        if not self.controller.has_auto_backup():
            self.console.print(f"[yellow]No auto-backup configured for '{world}'.[/yellow]")
            return
        if not self.confirm(f"Disable auto-backup for '{world}'?"):
            self.console.print("[cyan]Auto-backup unchanged.[/cyan]")
            return
        self.controller.remove_auto_backup()
