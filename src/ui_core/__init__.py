from .console_app import ConsoleApp
from .log_sink import LogLine, LogSink

__all__ = [
    "ConsoleApp",
    "LogLine",
    "LogSink",
]
