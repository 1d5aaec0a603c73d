from __future__ import annotations

from pathlib import Path
from typing import Optional


class SessionStore:
    """
    Persists the selected world as a single `WORLD_NAME=<name>` line.
    Missing or malformed files read as "nothing selected".
    """

    KEY = "WORLD_NAME"

    def __init__(self, session_path: Path):
        self.session_path = Path(session_path)

    def get(self) -> Optional[str]:
        try:
            text = self.session_path.read_text(encoding="utf-8")
        except (FileNotFoundError, UnicodeDecodeError):
            return None
        for line in text.splitlines():
            key, sep, value = line.strip().partition("=")
            if sep and key == self.KEY:
                value = value.strip().strip('"')
                return value or None
        return None

    def set(self, name: str) -> None:
        self.session_path.parent.mkdir(parents=True, exist_ok=True)
        self.session_path.write_text(f"{self.KEY}={name}\n", encoding="utf-8")

    def clear(self) -> None:
        self.session_path.unlink(missing_ok=True)
