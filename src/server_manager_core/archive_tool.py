from __future__ import annotations

import tarfile
from pathlib import Path
from typing import Callable, Iterable

from .constants import ARCHIVE_EXT
from .errors import ExternalToolFailure


class TarArchiveTool:
    """
    gzip'd tar archives with the archive root set to base_dir, so members are
    bare filenames and extraction does not care where the world dir lives.
    """

    extension = ARCHIVE_EXT

    def __init__(self, log_fn: Callable[[str], None]):
        self.log = log_fn

    def compress(self, dest_path: Path, base_dir: Path, files: Iterable[str]) -> Path:
        dest_path = Path(dest_path)
        base_dir = Path(base_dir)
        names = list(files)

        missing = [n for n in names if not (base_dir / n).is_file()]
        if missing:
            raise ExternalToolFailure(
                f"Cannot archive; missing source file(s) in {base_dir}",
                ", ".join(missing),
            )

        dest_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = dest_path.with_name(dest_path.name + ".partial")
        try:
            with tarfile.open(tmp_path, "w:gz") as tf:
                for name in names:
                    tf.add(base_dir / name, arcname=name)
            tmp_path.replace(dest_path)
        except (OSError, tarfile.TarError) as e:
            tmp_path.unlink(missing_ok=True)
            raise ExternalToolFailure(f"Archive creation failed for {dest_path.name}", str(e)) from e

        return dest_path

    def extract(self, archive_path: Path, dest_dir: Path) -> list[str]:
        archive_path = Path(archive_path)
        dest_dir = Path(dest_dir)
        if not archive_path.is_file():
            raise ExternalToolFailure(f"Archive not found: {archive_path}")

        dest_dir.mkdir(parents=True, exist_ok=True)
        root = dest_dir.resolve()
        try:
            with tarfile.open(archive_path, "r:gz") as tf:
                members = tf.getmembers()
                for m in members:
                    target = (root / m.name).resolve()
                    if root != target and root not in target.parents:
                        raise ExternalToolFailure(f"Refusing to extract outside {root}", m.name)
                    if not (m.isfile() or m.isdir()):
                        raise ExternalToolFailure("Refusing to extract non-regular member", m.name)
                if hasattr(tarfile, "data_filter"):
                    tf.extractall(path=root, members=members, filter="data")
                else:
                    tf.extractall(path=root, members=members)
        except (OSError, tarfile.TarError) as e:
            raise ExternalToolFailure(f"Archive extraction failed for {archive_path.name}", str(e)) from e

        return [m.name for m in members]
