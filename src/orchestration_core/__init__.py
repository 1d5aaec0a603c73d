from .app_controller import AppController, MenuHeader

__all__ = [
    "AppController",
    "MenuHeader",
]
