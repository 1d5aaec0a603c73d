from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from typing import List

_TAG_RE = re.compile(r"^\[([A-Z-]+)\]\s*")


@dataclass
class LogLine:
    text: str

    @property
    def tag(self) -> str:
        m = _TAG_RE.match(self.text)
        return m.group(1) if m else ""

    @property
    def message(self) -> str:
        return _TAG_RE.sub("", self.text, count=1)


class LogSink:
    """
    Thread-safe log buffer.
    - Controller and core components call .write() through log_fn
    - The console drains with .drain() after each action
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._lines: List[LogLine] = []

    def write(self, text: str) -> None:
        with self._lock:
            self._lines.append(LogLine(text=str(text)))

    def drain(self, max_lines: int = 500) -> List[LogLine]:
        with self._lock:
            if not self._lines:
                return []
            take = self._lines[:max_lines]
            self._lines = self._lines[max_lines:]
        return take
