"""Storage for unmanaged files displaced by a copy deploy.

The vault mirrors the target directory's relative layout. A file present in
the vault is the only record that it was displaced and must be put back.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class BackupVault:
    def __init__(self, root: Path) -> None:
        self.root = root

    def contains(self, relative_path: Path) -> bool:
        return (self.root / relative_path).is_file()

    def store(self, relative_path: Path, source: Path) -> Path:
        """Move *source* into the vault at *relative_path*.

        Callers check :meth:`contains` first so that an original file is
        stored at most once per deploy cycle.
        """
        destination = self.root / relative_path
        destination.parent.mkdir(parents=True, exist_ok=True)
        source.rename(destination)
        logger.info("Backed up %s", relative_path)
        return destination

    def stored_paths(self) -> list[Path]:
        if not self.root.is_dir():
            return []
        return sorted(p.relative_to(self.root) for p in self.root.rglob("*") if p.is_file())

    def is_empty(self) -> bool:
        return not self.stored_paths()

    def restore_all(self, target_root: Path) -> int:
        """Move every stored file back under *target_root*.

        Walks contents-first so each vault directory is empty, and removed,
        by the time the walk climbs back out of it. The vault root itself is
        kept. Returns the number of files restored.
        """
        if not self.root.is_dir():
            return 0

        restored = 0
        for dirpath, _dirnames, filenames in os.walk(self.root, topdown=False):
            current = Path(dirpath)
            for filename in sorted(filenames):
                stored = current / filename
                relative = stored.relative_to(self.root)
                destination = target_root / relative
                destination.parent.mkdir(parents=True, exist_ok=True)
                stored.rename(destination)
                restored += 1
                logger.info("Restored %s", relative)
            if current != self.root:
                current.rmdir()

        return restored
