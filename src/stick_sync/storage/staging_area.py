"""Hidden per-directory staging area for entries displaced during a rebuild."""

import os
import shutil
from pathlib import Path

import structlog

from stick_sync.errors import SyncIOError
from stick_sync.models.events import SyncEvent, SyncEventKind, SyncEventListener
from stick_sync.scanning.directory_scanner import STAGING_DIR_NAME

log = structlog.stdlib.get_logger()


def remove_path(path: Path) -> bool:
    """
    Remove a file, symlink or directory tree.

    Args:
        path: Path to remove

    Returns:
        True if something was removed, False if it was already gone

    Raises:
        SyncIOError: If removal fails for any reason other than absence
    """
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        log.error("remove_failed", path=str(path), error=str(e))
        raise SyncIOError("Failed to remove", path) from e


class StagingArea:
    """Scratch directory that keeps a level's old entries during a rebuild.

    Moving an entry into the staging area and back is a rename on the same
    volume, so unchanged files are reclaimed without copying their data.
    """

    def __init__(
        self,
        directory: Path | str,
        name: str = STAGING_DIR_NAME,
        listener: SyncEventListener | None = None,
    ):
        """
        Initialize the staging area of one directory level.

        The directory is not created until the first backup.

        Args:
            directory: Destination directory this staging area belongs to
            name: Reserved name of the staging directory
            listener: Optional callable receiving a SyncEvent per move
        """
        self._directory: Path = Path(directory)
        self._name: str = name
        self._listener: SyncEventListener | None = listener

    @property
    def path(self) -> Path:
        return self._directory / self._name

    def exists(self) -> bool:
        return self.path.is_dir()

    def is_staged(self, name: str) -> bool:
        return os.path.lexists(self.path / name)

    def backup(self, name: str) -> bool:
        """
        Move a destination entry into the staging area.

        Does nothing if an entry of the same name is already staged, so a
        rebuild interrupted half-way can be re-run safely.

        Args:
            name: Name of the entry within the destination directory

        Returns:
            True if the entry was moved
        """
        source = self._directory / name
        if self._is_inside_staging(source):
            return False
        if self.is_staged(name):
            log.debug("backup_skipped_already_staged", path=str(source))
            return False
        if not os.path.lexists(source):
            return False

        self._ensure()
        if not self._move(source, self.path / name):
            return False

        self._emit(SyncEventKind.BACKUP, source)
        return True

    def restore(self, name: str, destination_dir: Path | str) -> bool:
        """
        Move a staged entry back into a destination directory.

        Any entry already at the target is removed first.

        Args:
            name: Name of the staged entry
            destination_dir: Directory receiving the entry

        Returns:
            True if the entry was restored
        """
        staged = self.path / name
        if not os.path.lexists(staged):
            return False

        target = Path(destination_dir) / name
        if not self._move_replacing(staged, target):
            return False

        self._emit(SyncEventKind.RESTORE, target)
        return True

    def restore_children(self, name: str, destination_dir: Path | str) -> bool:
        """
        Move the staged children of directory `name` into a destination directory.

        Equivalent to restoring `name/*`, hidden children included. Names are
        taken literally, so brackets in album names need no escaping.

        Args:
            name: Name of the staged directory
            destination_dir: Directory receiving the children

        Returns:
            True if at least one child was restored
        """
        staged_dir = self.path / name
        if not staged_dir.is_dir() or staged_dir.is_symlink():
            return False

        try:
            children = sorted(os.listdir(staged_dir), key=str.lower)
        except FileNotFoundError:
            return False

        restored = False
        for child in children:
            staged = staged_dir / child
            target = Path(destination_dir) / staged.name
            if self._move_replacing(staged, target):
                self._emit(SyncEventKind.RESTORE, target)
                restored = True

        return restored

    def clear(self) -> bool:
        """
        Remove the staging area and anything left in it.

        Returns:
            True if a staging area existed and was removed
        """
        if not os.path.lexists(self.path):
            return False
        if not remove_path(self.path):
            return False

        self._emit(SyncEventKind.CLEAR, self.path)
        return True

    def _ensure(self) -> None:
        try:
            self.path.mkdir(exist_ok=True)
        except OSError as e:
            log.error("staging_area_create_failed", path=str(self.path), error=str(e))
            raise SyncIOError("Failed to create staging area", self.path) from e

    def _is_inside_staging(self, path: Path) -> bool:
        staging = os.path.abspath(self.path)
        candidate = os.path.abspath(path)
        return candidate == staging or candidate.startswith(staging + os.sep)

    def _move_replacing(self, staged: Path, target: Path) -> bool:
        if os.path.lexists(target):
            remove_path(target)
        return self._move(staged, target)

    def _move(self, source: Path, target: Path) -> bool:
        """Rename source to target; False if the source disappeared."""
        try:
            shutil.move(str(source), str(target))
            return True
        except FileNotFoundError:
            log.debug("move_source_missing", source=str(source), target=str(target))
            return False
        except OSError as e:
            log.error("move_failed", source=str(source), target=str(target), error=str(e))
            raise SyncIOError("Failed to move", source) from e

    def _emit(self, kind: SyncEventKind, path: Path) -> None:
        if self._listener is not None:
            self._listener(SyncEvent(kind=kind, path=path))
