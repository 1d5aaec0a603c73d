from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional

from rich.console import Console
from rich.prompt import Confirm, Prompt

from src.orchestration_core import AppController
from src.server_manager_core.models import ReadinessReport


@dataclass(frozen=True)
class MenuAction:
    label: str
    handler: Callable[[], None]


class BaseMenu(ABC):
    """
    Contract for one block of the numbered main menu.

    actions() -> ordered entries; ConsoleApp numbers them across all menus.
    """

    MENU_TITLE: str = "Base"
    ORDER: int = 100

    def __init__(self, controller: AppController, log_fn: Callable[[str], None], console: Console):
        self.controller = controller
        self.log = log_fn
        self.console = console

    @abstractmethod
    def actions(self) -> List[MenuAction]:
        raise NotImplementedError

    # -------------------------
    # Prompt helpers
    # -------------------------

    def ask(self, prompt: str, default: Optional[str] = None) -> str:
        if default is None:
            return Prompt.ask(prompt, console=self.console, default="", show_default=False).strip()
        return Prompt.ask(prompt, console=self.console, default=default).strip()

    def ask_required(self, prompt: str, error: str) -> str:
        while True:
            value = self.ask(prompt)
            if value:
                return value
            self.console.print(f"[red]{error}[/red]")

    def confirm(self, prompt: str, default: bool = False) -> bool:
        return Confirm.ask(prompt, console=self.console, default=default)

    def require_world_or_report(self, action: str) -> Optional[str]:
        world = self.controller.selected_world()
        if not world:
            self.console.print(f"[red]ERROR: No world selected. Cannot {action}.[/red]")
        return world

    def show_readiness(self, report: ReadinessReport) -> None:
        if report.mode == "crossplay":
            self.console.print(f"[green]Server is ready![/green] Join Code: [green]{report.join_code}[/green]")
            return
        if report.mode == "steam":
            self.console.print("[green]Server is ready! Steam-only mode.[/green]")
        else:
            self.console.print("[yellow]No join code or Steam-server line seen. Connect by IP instead.[/yellow]")
        self.console.print(f"LAN: [green]{report.lan_address}[/green]")
        self.console.print(f"WAN: [green]{report.wan_address}[/green]")
        self.console.print("[yellow]Port forwarding required (UDP 2456-2458).[/yellow]")
