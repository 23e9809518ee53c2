"""Directory listing with a fixed ignore set and deterministic ordering."""

import os
import stat
from pathlib import Path

import structlog

from stick_sync.errors import DirectoryNotFoundError, SyncIOError
from stick_sync.models.entry import DirectorySnapshot, Entry, EntryKind

log = structlog.stdlib.get_logger()

STAGING_DIR_NAME = ".tmp"

# OS metadata the device or the host may create at any level
SYSTEM_FILES: frozenset[str] = frozenset({".DS_Store", ".Trashes", ".fseventsd"})

DEFAULT_IGNORE: frozenset[str] = frozenset(
    {".", "..", "MUSICBMK.BMK", ".Spotlight-V100", STAGING_DIR_NAME} | SYSTEM_FILES
)


class DirectoryScanner:
    """Produces DirectorySnapshots of single directory levels."""

    def __init__(self, ignore: frozenset[str] = DEFAULT_IGNORE):
        """
        Initialize directory scanner.

        Args:
            ignore: Literal names that are never part of a snapshot
        """
        self._ignore: frozenset[str] = frozenset(ignore)

    @property
    def ignore(self) -> frozenset[str]:
        return self._ignore

    def scan(self, path: Path | str) -> DirectorySnapshot:
        """
        List a directory's children, drop ignored names and sort them.

        Entries are sorted by lower-cased name. The sort is stable, so names
        differing only by case keep their listing order.

        Args:
            path: Directory to scan

        Returns:
            DirectorySnapshot of the directory's immediate children

        Raises:
            DirectoryNotFoundError: If the path does not exist or is not a directory
            SyncIOError: If the directory cannot be listed
        """
        path = Path(path)
        entries: list[Entry] = []

        try:
            with os.scandir(path) as iterator:
                for child in iterator:
                    if child.name in self._ignore:
                        continue
                    entry = self._classify(child)
                    if entry is not None:
                        entries.append(entry)
        except (FileNotFoundError, NotADirectoryError) as e:
            log.error("directory_not_found", path=str(path))
            raise DirectoryNotFoundError(path) from e
        except OSError as e:
            log.error("directory_scan_failed", path=str(path), error=str(e))
            raise SyncIOError("Failed to list directory", path) from e

        entries.sort(key=lambda entry: entry.name.lower())

        log.debug("directory_scanned", path=str(path), entry_count=len(entries))
        return DirectorySnapshot(path=path, entries=tuple(entries))

    def _classify(self, child: os.DirEntry) -> Entry | None:
        """Stat a child and turn it into an Entry, or None if it vanished."""
        try:
            st = child.stat()
        except FileNotFoundError:
            log.debug("entry_vanished_during_scan", path=child.path)
            return None

        if stat.S_ISDIR(st.st_mode):
            return Entry(name=child.name, kind=EntryKind.DIRECTORY)
        return Entry(name=child.name, kind=EntryKind.FILE, size=st.st_size)
