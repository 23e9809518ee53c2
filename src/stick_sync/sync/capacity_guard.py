"""Preflight check that the source tree fits on the destination volume."""

import os
import shutil
from pathlib import Path
from typing import Callable

import structlog

from stick_sync.errors import InsufficientSpaceError, SyncIOError
from stick_sync.models.entry import CapacitySnapshot
from stick_sync.scanning.directory_scanner import DEFAULT_IGNORE

log = structlog.stdlib.get_logger()


def directory_size(root: Path | str, ignore: frozenset[str] = DEFAULT_IGNORE) -> int:
    """
    Total size in bytes of all files below a directory.

    Walks the tree the way the scanner sees it: symlinks are followed, ignored
    names are skipped, and a file that vanishes during the walk counts as
    zero.

    Raises:
        SyncIOError: If a directory in the tree cannot be listed
    """

    def fail(error: OSError) -> None:
        log.error("size_walk_failed", path=str(error.filename), error=str(error))
        raise SyncIOError("Failed to measure", error.filename or root) from error

    total = 0
    for dirpath, dirnames, filenames in os.walk(root, onerror=fail, followlinks=True):
        dirnames[:] = [name for name in dirnames if name not in ignore]
        for filename in filenames:
            if filename in ignore:
                continue
            try:
                total += os.stat(os.path.join(dirpath, filename)).st_size
            except FileNotFoundError:
                continue
            except OSError as e:
                fail(e)
    return total


def free_space(path: Path | str) -> int:
    """Free bytes on the volume containing path."""
    return shutil.disk_usage(path).free


class CapacityGuard:
    """Compares the size of the source tree with free destination space."""

    def __init__(
        self,
        size_probe: Callable[[Path], int] = directory_size,
        free_space_probe: Callable[[Path], int] = free_space,
    ):
        """
        Initialize capacity guard.

        Args:
            size_probe: Returns the occupied size of a directory tree
            free_space_probe: Returns free bytes on the volume holding a path
        """
        self._size_probe = size_probe
        self._free_space_probe = free_space_probe

    def measure(self, source_root: Path | str, destination_root: Path | str) -> CapacitySnapshot:
        """Measure source size and free destination space."""
        snapshot = CapacitySnapshot(
            source_bytes=self._size_probe(Path(source_root)),
            destination_free_bytes=self._free_space_probe(Path(destination_root)),
        )
        log.info(
            "capacity_measured",
            source_root=str(source_root),
            destination_root=str(destination_root),
            required_bytes=snapshot.required,
            available_bytes=snapshot.available,
        )
        return snapshot

    def check(self, source_root: Path | str, destination_root: Path | str) -> CapacitySnapshot:
        """
        Fail when the source needs more space than the destination has free.

        Args:
            source_root: Root of the source tree
            destination_root: Root of the destination tree

        Returns:
            The measured CapacitySnapshot when the source fits

        Raises:
            InsufficientSpaceError: If required bytes strictly exceed available bytes
        """
        snapshot = self.measure(source_root, destination_root)

        if not snapshot.fits:
            log.error(
                "insufficient_space",
                required_gib=snapshot.required_gib,
                available_gib=snapshot.available_gib,
            )
            raise InsufficientSpaceError(required=snapshot.required, available=snapshot.available)

        return snapshot
