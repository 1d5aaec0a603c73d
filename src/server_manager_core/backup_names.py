"""
Backup filename codec.

Backups carry their metadata in the filename:

    <world>_backup_YYYY-MM-DD-HHMM.tar.gz
    <world>_pre-restore_YYYY-MM-DD-HHMM.tar.gz

The fixed-width timestamp sorts lexicographically in chronological order, so
the timestamp string is used directly as the ordering key.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from .constants import ARCHIVE_EXT

TIMESTAMP_FORMAT = "%Y-%m-%d-%H%M"
_TIMESTAMP_RE = r"\d{4}-\d{2}-\d{2}-\d{4}"


class BackupKind(str, Enum):
    REGULAR = "backup"
    PRE_RESTORE = "pre-restore"


@dataclass(frozen=True)
class BackupDescriptor:
    world: str
    kind: BackupKind
    timestamp: str
    path: str = ""

    @property
    def filename(self) -> str:
        return format_backup_name(self.world, self.timestamp, self.kind)

    @property
    def date_display(self) -> str:
        return decode_timestamp(self.timestamp)[0]

    @property
    def time_display(self) -> str:
        return decode_timestamp(self.timestamp)[1]


def make_timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def format_backup_name(world: str, timestamp: str, kind: BackupKind = BackupKind.REGULAR) -> str:
    if not re.fullmatch(_TIMESTAMP_RE, timestamp):
        raise ValueError(f"Malformed backup timestamp: {timestamp!r}")
    return f"{world}_{BackupKind(kind).value}_{timestamp}.{ARCHIVE_EXT}"


def backup_glob(world: str, kind: BackupKind = BackupKind.REGULAR) -> str:
    return f"{world}_{BackupKind(kind).value}_*.{ARCHIVE_EXT}"


def parse_backup_name(filename: str, world: Optional[str] = None) -> Optional[BackupDescriptor]:
    """
    Inverse of format_backup_name. Returns None for anything that does not
    match the grammar.

    If world is given, only names for exactly that world match. This keeps
    "Alpha" from claiming "Alpha_backup_x_backup_..." style names that belong
    to a world literally called "Alpha_backup_x".
    """
    ext = re.escape(ARCHIVE_EXT)
    world_re = re.escape(world) if world is not None else r".+"
    m = re.fullmatch(rf"({world_re})_(backup|pre-restore)_({_TIMESTAMP_RE})\.{ext}", filename)
    if not m:
        return None
    return BackupDescriptor(world=m.group(1), kind=BackupKind(m.group(2)), timestamp=m.group(3))


def decode_timestamp(timestamp: str, *, pad_hour: bool = False) -> Tuple[str, str]:
    """
    "2024-01-05-1430" -> ("2024/01/05", "2:30 PM").

    Hour 0 reads as 12 AM and hour 12 as 12 PM. pad_hour gives "02:30 PM",
    the form used in the menu header.
    """
    if not re.fullmatch(_TIMESTAMP_RE, timestamp):
        raise ValueError(f"Malformed backup timestamp: {timestamp!r}")

    year, month, day, hhmm = timestamp.split("-")
    hour = int(hhmm[:2])
    minute = hhmm[2:]

    if hour == 0:
        std_hour, ampm = 12, "AM"
    elif hour < 12:
        std_hour, ampm = hour, "AM"
    elif hour == 12:
        std_hour, ampm = 12, "PM"
    else:
        std_hour, ampm = hour - 12, "PM"

    hour_txt = f"{std_hour:02d}" if pad_hour else str(std_hour)
    return f"{year}/{month}/{day}", f"{hour_txt}:{minute} {ampm}"
