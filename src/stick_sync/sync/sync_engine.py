"""Synchronization engine that rebuilds changed directories in playback order."""

import os
import shutil
from pathlib import Path

import structlog

from stick_sync.errors import DirectoryNotFoundError, SyncError, SyncIOError
from stick_sync.models.config import FingerprintStrategy
from stick_sync.models.entry import DirectorySnapshot, Entry
from stick_sync.models.events import SyncEvent, SyncEventKind, SyncEventListener
from stick_sync.scanning.directory_scanner import STAGING_DIR_NAME, DirectoryScanner
from stick_sync.scanning.fingerprint import Fingerprinter, file_digest
from stick_sync.storage.staging_area import StagingArea, remove_path
from stick_sync.sync.capacity_guard import CapacityGuard
from stick_sync.sync.models import SyncReport

log = structlog.stdlib.get_logger()


def log_event(event: SyncEvent) -> None:
    """Default event listener: one log line per mutating action."""
    log.info("sync_event", kind=event.kind.value, path=str(event.path))


class SyncEngine:
    """Synchronizes a source tree onto a device that plays files in write order.

    The device sorts a directory's files by creation time, so any change to a
    directory's membership means its whole content has to be written again.
    Old entries are moved into a staging area first and moved back where
    name and size still match, which avoids copying unchanged files.
    """

    def __init__(
        self,
        scanner: DirectoryScanner | None = None,
        fingerprinter: Fingerprinter | None = None,
        capacity_guard: CapacityGuard | None = None,
        listener: SyncEventListener | None = log_event,
        staging_name: str = STAGING_DIR_NAME,
        continue_on_error: bool = True,
    ):
        """
        Initialize sync engine.

        Args:
            scanner: Directory scanner (default ignore set if None)
            fingerprinter: Fingerprinter (size strategy if None)
            capacity_guard: Preflight capacity check (native probes if None)
            listener: Callable receiving every SyncEvent; logs them by default
            staging_name: Reserved name of each level's staging directory
            continue_on_error: Keep syncing siblings when a subtree fails
        """
        self._scanner: DirectoryScanner = scanner or DirectoryScanner()
        self._fingerprinter: Fingerprinter = fingerprinter or Fingerprinter()
        self._capacity_guard: CapacityGuard = capacity_guard or CapacityGuard()
        self._listener: SyncEventListener | None = listener
        self._staging_name: str = staging_name
        self._continue_on_error: bool = continue_on_error
        self._report: SyncReport = SyncReport(source_root="", destination_root="")

        if staging_name not in self._scanner.ignore:
            raise ValueError(f"staging name {staging_name!r} must be in the scanner ignore set")

    @property
    def report(self) -> SyncReport:
        """Report of the current or most recent run."""
        return self._report

    def sync_tree(
        self,
        source_root: Path | str,
        destination_root: Path | str,
        check_capacity: bool = True,
    ) -> SyncReport:
        """
        Synchronize a whole source tree onto an existing destination.

        This method:
        1. Verifies both roots exist
        2. Runs the capacity check once, before anything is touched
        3. Walks the tree depth-first, rebuilding changed levels

        Args:
            source_root: Root of the source tree
            destination_root: Root of the destination tree; must already exist
            check_capacity: Run the capacity check first

        Returns:
            SyncReport with synchronization results

        Raises:
            DirectoryNotFoundError: If either root is missing
            InsufficientSpaceError: If the source does not fit on the destination
            SyncIOError: If the root level fails, or any level with continue_on_error off
        """
        source_root = Path(source_root)
        destination_root = Path(destination_root)

        for root in (source_root, destination_root):
            if not root.is_dir():
                log.error("root_directory_not_found", path=str(root))
                raise DirectoryNotFoundError(root)

        if check_capacity:
            self._capacity_guard.check(source_root, destination_root)

        self._report = SyncReport(
            source_root=str(source_root),
            destination_root=str(destination_root),
        )
        log.info(
            "sync_tree_started",
            source_root=str(source_root),
            destination_root=str(destination_root),
            strategy=self._fingerprinter.strategy.value,
        )

        try:
            self.sync(source_root, destination_root)
        finally:
            self._report.finish()

        log.info(
            "sync_tree_completed",
            directories_visited=self._report.directories_visited,
            directories_rebuilt=self._report.directories_rebuilt,
            files_copied=self._report.files_copied,
            files_restored=self._report.files_restored,
            errors=len(self._report.errors),
            duration_seconds=self._report.duration_seconds,
        )
        return self._report

    def sync(self, source_dir: Path | str, dest_dir: Path | str) -> None:
        """
        Synchronize one directory pair, then its subdirectories.

        The level is rebuilt only when the fingerprints differ. Subdirectories
        are always visited, whatever the outcome at this level. The staging
        area is removed last, after every descendant is done.

        Args:
            source_dir: Source directory
            dest_dir: Corresponding destination directory
        """
        source_dir = Path(source_dir)
        dest_dir = Path(dest_dir)

        source_snapshot = self._scanner.scan(source_dir)
        dest_snapshot = self._scanner.scan(dest_dir)
        self._report.directories_visited += 1

        staging = StagingArea(dest_dir, self._staging_name, listener=self._emit)

        if self._fingerprinter.fingerprint(source_snapshot) == self._fingerprinter.fingerprint(
            dest_snapshot
        ):
            self._report.directories_skipped += 1
            log.debug("directory_unchanged", path=str(dest_dir))
        else:
            self._report.directories_rebuilt += 1
            log.info(
                "directory_rebuild_started",
                path=str(dest_dir),
                source_entries=len(source_snapshot),
                destination_entries=len(dest_snapshot),
            )
            self._rebuild(source_snapshot, dest_snapshot, staging)

        for entry in source_snapshot.directories:
            self._sync_subdirectory(source_dir / entry.name, dest_dir / entry.name)

        staging.clear()

    def _rebuild(
        self,
        source_snapshot: DirectorySnapshot,
        dest_snapshot: DirectorySnapshot,
        staging: StagingArea,
    ) -> None:
        """Stage the destination level and re-create it in source order."""
        source_dir = source_snapshot.path
        dest_dir = dest_snapshot.path

        for entry in dest_snapshot.entries:
            staging.backup(entry.name)

        for entry in source_snapshot.entries:
            target = dest_dir / entry.name

            if entry.is_directory:
                self._ensure_directory(target)
                # Unchanged nested files come back by rename, not by copy
                staging.restore_children(entry.name, target)
                continue

            restored = staging.restore(entry.name, dest_dir)
            if restored and not self._matches(entry, source_dir / entry.name, target):
                self._delete(target)

            if not target.exists():
                if os.path.lexists(target):
                    # Dangling symlink, never part of a snapshot
                    self._delete(target)
                self._copy(source_dir / entry.name, target, entry.size)

    def _sync_subdirectory(self, source_dir: Path, dest_dir: Path) -> None:
        try:
            self.sync(source_dir, dest_dir)
        except SyncError as e:
            if not self._continue_on_error:
                raise
            log.error(
                "subdirectory_sync_failed",
                source=str(source_dir),
                destination=str(dest_dir),
                error=str(e),
            )
            self._report.errors.append(f"{source_dir}: {e}")

    def _matches(self, entry: Entry, source: Path, target: Path) -> bool:
        """
        Check a restored file against its source by size (and content, if configured).

        Raises:
            SyncIOError: If either file exists but cannot be read
        """
        try:
            if not target.is_file() or target.stat().st_size != entry.size:
                return False
            if self._fingerprinter.strategy is FingerprintStrategy.CONTENT:
                return file_digest(source) == file_digest(target)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            log.error("compare_failed", source=str(source), target=str(target), error=str(e))
            raise SyncIOError("Failed to compare", target) from e

    def _ensure_directory(self, path: Path) -> None:
        if path.is_dir():
            return
        if os.path.lexists(path):
            self._delete(path)
        try:
            path.mkdir()
        except OSError as e:
            log.error("mkdir_failed", path=str(path), error=str(e))
            raise SyncIOError("Failed to create directory", path) from e
        self._emit(SyncEvent(kind=SyncEventKind.MKDIR, path=path))

    def _delete(self, path: Path) -> None:
        if remove_path(path):
            self._emit(SyncEvent(kind=SyncEventKind.DELETE, path=path))

    def _copy(self, source: Path, target: Path, size: int) -> None:
        try:
            shutil.copyfile(source, target)
        except FileNotFoundError:
            log.warning("copy_source_missing", source=str(source), target=str(target))
            return
        except OSError as e:
            log.error("copy_failed", source=str(source), target=str(target), error=str(e))
            raise SyncIOError("Failed to copy", source) from e
        self._emit(SyncEvent(kind=SyncEventKind.COPY, path=target, size=size))

    def _emit(self, event: SyncEvent) -> None:
        self._report.record(event)
        if self._listener is not None:
            self._listener(event)
