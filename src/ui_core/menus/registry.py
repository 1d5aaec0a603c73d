# src/ui_core/menus/registry.py
from __future__ import annotations

from .base_menu import BaseMenu
from .server_menu import ServerMenu
from .world_menu import WorldMenu
from .backup_menu import BackupMenu
from .steam_menu import SteamMenu
from .host_menu import HostMenu


def get_menu_classes() -> list[type[BaseMenu]]:
    """Central place to register menu blocks."""
    menus: list[type[BaseMenu]] = [
        ServerMenu,
        WorldMenu,
        BackupMenu,
        SteamMenu,
        HostMenu,
    ]

    return sorted(menus, key=lambda m: getattr(m, "ORDER", 100))
