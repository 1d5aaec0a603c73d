from .base_menu import BaseMenu, MenuAction
from .registry import get_menu_classes

__all__ = [
    "BaseMenu",
    "MenuAction",
    "get_menu_classes",
]
