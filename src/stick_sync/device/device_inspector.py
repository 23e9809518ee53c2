"""Checks and housekeeping on the destination device root."""

import os
from pathlib import Path

import structlog

from stick_sync.errors import SyncIOError
from stick_sync.scanning.directory_scanner import SYSTEM_FILES
from stick_sync.storage.staging_area import remove_path

log = structlog.stdlib.get_logger()


class DeviceInspector:
    """Inspects and tidies the root of a removable destination."""

    def __init__(self, root: Path | str):
        """
        Initialize device inspector.

        Args:
            root: Destination root, usually the device mount point
        """
        self._root: Path = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def exists(self) -> bool:
        return self._root.is_dir()

    def is_mounted(self) -> bool:
        """Check if the destination root is a mount point."""
        mounted = os.path.ismount(self._root)
        if not mounted:
            log.warning("destination_not_mounted", root=str(self._root))
        return mounted

    def remove_system_files(self, names: frozenset[str] = SYSTEM_FILES) -> list[Path]:
        """
        Delete OS junk files and folders from the destination root.

        Entries that cannot be removed are logged and left in place.

        Args:
            names: Names to remove from the root

        Returns:
            Paths that were removed
        """
        removed: list[Path] = []

        for name in sorted(names):
            path = self._root / name
            if not os.path.lexists(path):
                continue
            try:
                if remove_path(path):
                    removed.append(path)
                    log.info("system_file_removed", path=str(path))
            except SyncIOError as e:
                log.warning("system_file_not_removed", path=str(path), error=str(e))

        return removed
