from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from .archive_tool import TarArchiveTool
from .backup_names import (
    BackupDescriptor,
    BackupKind,
    backup_glob,
    format_backup_name,
    make_timestamp,
    parse_backup_name,
)
from .constants import BACKUP_PAGE_SIZE, MAX_BACKUPS, WORLD_DB_EXT, WORLD_META_EXT
from .errors import ExternalToolFailure, NotFoundError


class BackupPager:
    """
    Pages over one listing snapshot. Pages are slices of the same list, so a
    backup shown on page 1 can never reappear on page 2 even if a scheduled
    backup lands mid-browse.
    """

    def __init__(self, items: List[BackupDescriptor], page_size: int = BACKUP_PAGE_SIZE):
        self.items = list(items)
        self.page_size = max(1, page_size)

    @property
    def page_count(self) -> int:
        return (len(self.items) + self.page_size - 1) // self.page_size

    def page(self, number: int) -> List[BackupDescriptor]:
        """1-based page slice."""
        start = (number - 1) * self.page_size
        return self.items[start:start + self.page_size] if number >= 1 else []

    def up_to(self, number: int) -> List[BackupDescriptor]:
        """Pages 1..number concatenated (what a "load more" view shows)."""
        return self.items[: max(0, number) * self.page_size]

    def has_more(self, number: int) -> bool:
        return number * self.page_size < len(self.items)


class BackupManager:
    def __init__(
        self,
        world_dir: Path,
        backup_dir: Path,
        log_fn: Callable[[str], None],
        *,
        archive: Optional[TarArchiveTool] = None,
        max_backups: int = MAX_BACKUPS,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.world_dir = Path(world_dir)
        self.backup_dir = Path(backup_dir)
        self.log = log_fn
        self.archive = archive or TarArchiveTool(log_fn)
        self.max_backups = max_backups
        self._clock = clock

    @staticmethod
    def source_files(world: str) -> List[str]:
        return [f"{world}{WORLD_DB_EXT}", f"{world}{WORLD_META_EXT}"]

    # -------------------------
    # Create / retention
    # -------------------------

    def create(self, world: str, kind: BackupKind = BackupKind.REGULAR) -> BackupDescriptor:
        timestamp = make_timestamp(self._clock())
        dest = self.backup_dir / format_backup_name(world, timestamp, kind)

        self.archive.compress(dest, self.world_dir, self.source_files(world))
        self.log(f"[OK] Backup created: {dest}")

        if kind is BackupKind.REGULAR:
            self.apply_retention(world)
        return BackupDescriptor(world=world, kind=kind, timestamp=timestamp, path=str(dest))

    def apply_retention(self, world: str) -> List[BackupDescriptor]:
        """Drop the oldest regular backups until at most max_backups remain."""
        removed: List[BackupDescriptor] = []
        backups = self.list(world, BackupKind.REGULAR)
        while len(backups) > self.max_backups:
            oldest = backups.pop()
            self.log(f"[WARN] Too many backups detected. Removing oldest backup: {oldest.path}")
            Path(oldest.path).unlink(missing_ok=True)
            removed.append(oldest)
        return removed

    # -------------------------
    # Listing
    # -------------------------

    def list(self, world: str, kind: BackupKind = BackupKind.REGULAR) -> List[BackupDescriptor]:
        """Return backups sorted newest-first."""
        if not self.backup_dir.is_dir():
            return []

        items: List[BackupDescriptor] = []
        for p in self.backup_dir.glob(backup_glob(world, kind)):
            parsed = parse_backup_name(p.name, world=world)
            if parsed is None or parsed.kind is not kind or not p.is_file():
                continue
            items.append(BackupDescriptor(world=parsed.world, kind=parsed.kind, timestamp=parsed.timestamp, path=str(p)))

        items.sort(key=lambda b: b.timestamp, reverse=True)
        return items

    def latest(self, world: str) -> Optional[BackupDescriptor]:
        items = self.list(world)
        return items[0] if items else None

    def pager(self, world: str, page_size: int = BACKUP_PAGE_SIZE) -> BackupPager:
        return BackupPager(self.list(world), page_size)

    # -------------------------
    # Restore
    # -------------------------

    def restore(self, world: str, backup: BackupDescriptor, controller) -> BackupDescriptor:
        """
        Point-in-time restore. Order is fixed:
          1) stop the server
          2) pre-restore snapshot of the current files (failure only warns)
          3) extract the chosen archive over the world dir
          4) start the server, even if 3 failed

        Returns the pre-restore snapshot descriptor (timestamp "" if it failed).
        Re-raises an extraction failure after the server is back up.
        """
        archive_path = Path(backup.path) if backup.path else self.backup_dir / backup.filename
        if not archive_path.is_file():
            raise NotFoundError(f"Backup not found: {archive_path}")

        has_binding = controller.has_binding(world)
        if has_binding:
            controller.stop(world)
        else:
            self.log(f"[WARN] No server service for '{world}'; restoring files only.")

        snapshot = BackupDescriptor(world=world, kind=BackupKind.PRE_RESTORE, timestamp="")
        self.log("[INFO] Backing up current world before restore...")
        try:
            snapshot = self.create(world, BackupKind.PRE_RESTORE)
            self.log(f"[OK] Current world backed up as: {snapshot.path}")
        except (ExternalToolFailure, OSError) as e:
            self.log(f"[WARN] Pre-restore backup failed, continuing with restore: {e}")

        extract_error: Optional[Exception] = None
        self.log(f"[INFO] Restoring backup: {archive_path.name}")
        try:
            self.archive.extract(archive_path, self.world_dir)
            self.log("[OK] Restore complete.")
        except (ExternalToolFailure, OSError) as e:
            extract_error = e
            self.log(f"[ERROR] Restore extraction failed: {e}")

        if has_binding:
            controller.start(world)

        if extract_error is not None:
            if isinstance(extract_error, ExternalToolFailure):
                raise extract_error
            raise ExternalToolFailure("Restore extraction failed", str(extract_error)) from extract_error
        return snapshot
