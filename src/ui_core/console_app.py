# src/ui_core/console_app.py
from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional, Tuple

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from src.orchestration_core import AppController, MenuHeader
from src.orchestration_core.errors import OrchestrationError

from .log_sink import LogLine, LogSink
from .menus import BaseMenu, MenuAction, get_menu_classes

TAG_STYLES = {
    "OK": "green",
    "INFO": "cyan",
    "WARN": "yellow",
    "ERROR": "red",
    "SYS": "magenta",
    "NET": "blue",
    "NET-ERR": "red",
}


class ConsoleApp:
    """
    Terminal UI orchestrator:
      - owns the rich Console and the numbered main menu
      - owns the LogSink and drains it after every action
      - renders the status header before each menu

    Design rules:
      - Menus call AppController for actions and state
      - Menus write logs via log_fn
      - ConsoleApp is the only place that catches OrchestrationError
    """

    def __init__(
        self,
        app_dir: Path,
        *,
        config_path: Optional[Path] = None,
        console: Optional[Console] = None,
        controller: Optional[AppController] = None,
        log_sink: Optional[LogSink] = None,
    ):
        self.app_dir = Path(app_dir).expanduser().resolve()
        self.console = console or Console()

        self._log_sink = log_sink or LogSink()
        self.log_fn: Callable[[str], None] = self._log_sink.write

        self.controller = controller or AppController(self.app_dir, self.log_fn, config_path=config_path)

        self._menus: List[BaseMenu] = [cls(self.controller, self.log_fn, self.console) for cls in get_menu_classes()]
        self._entries: List[Tuple[str, MenuAction]] = []
        for menu in self._menus:
            for action in menu.actions():
                self._entries.append((menu.MENU_TITLE, action))

        try:
            self.controller.load_state()
        except OrchestrationError as e:
            self.log_fn(f"[ERROR] Failed to load config: {e}")

    # -------------------------
    # Rendering
    # -------------------------

    def _render_header(self, header: MenuHeader) -> None:
        table = Table.grid(padding=(0, 2))
        table.add_column(style="cyan")
        table.add_column()

        table.add_row("LAN IP", header.lan_ip)
        table.add_row("WAN IP", header.wan_ip)
        if header.world:
            table.add_row("World", f"[green]{escape(header.world)}[/green]")
            status = "[green]RUNNING[/green]" if header.running else "[yellow]STOPPED[/yellow]"
            table.add_row("Status", status)
            table.add_row("Port", str(header.port) if header.port else "N/A")
            if header.join_code:
                table.add_row("Join Code", f"[green]{header.join_code}[/green]")
            table.add_row("Auto Backup", header.auto_backup)
            table.add_row("Last Backup", header.last_backup)
        else:
            table.add_row("World", "[red]No world selected[/red]")

        self.console.print(Panel(table, title="Valheim Server Manager", border_style="cyan"))

    def _render_menu(self) -> None:
        number = 0
        current = None
        for title, action in self._entries:
            if title != current:
                current = title
                self.console.print(f"\n[bold cyan]{title}[/bold cyan]")
            number += 1
            self.console.print(f"  {number}) {action.label}")
        self.console.print("\n  0) Exit")

    def _print_line(self, line: LogLine) -> None:
        style = TAG_STYLES.get(line.tag)
        if style:
            self.console.print(f"[{style}]\\[{line.tag}][/{style}] {escape(line.message)}")
        else:
            self.console.print(escape(line.text))

    def flush_logs(self) -> None:
        while True:
            lines = self._log_sink.drain(max_lines=500)
            if not lines:
                return
            for line in lines:
                self._print_line(line)

    # -------------------------
    # Actions
    # -------------------------

    def dispatch(self, choice: str) -> bool:
        """Run one numbered entry. Returns False when the choice is not a menu entry."""
        if not choice.isdigit() or not 1 <= int(choice) <= len(self._entries):
            return False

        _title, action = self._entries[int(choice) - 1]
        try:
            action.handler()
        except OrchestrationError as e:
            self.log_fn(f"[ERROR] {e}")
        finally:
            self.flush_logs()
        return True

    # -------------------------
    # Public
    # -------------------------

    def run(self) -> int:
        try:
            while True:
                self.flush_logs()
                self._render_header(self.controller.header())
                self._render_menu()

                choice = Prompt.ask("Choose an option", console=self.console, default="", show_default=False).strip()
                if choice == "0":
                    break
                if not self.dispatch(choice):
                    self.console.print("[red]Invalid option.[/red]")
                Prompt.ask("Press Enter to continue", console=self.console, default="", show_default=False)
        except (EOFError, KeyboardInterrupt):
            self.console.print()

        try:
            self.controller.save_state()
        except OSError as e:
            self.log_fn(f"[WARN] Could not save config: {e}")
        self.flush_logs()
        self.console.print("[cyan]Goodbye![/cyan]")
        return 0
