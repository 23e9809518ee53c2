"""Exceptions raised by the synchronization core."""

from pathlib import Path

from stick_sync.models.entry import to_gib


class SyncError(Exception):
    """Base class for synchronization failures."""

    pass


class DirectoryNotFoundError(SyncError):
    """Raised when a directory that must exist does not."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        super().__init__(f"Folder does not exist: {self.path}")


class InsufficientSpaceError(SyncError):
    """Raised when the source tree does not fit on the destination volume."""

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            f"Source size ({to_gib(required)} GB) exceeds "
            f"destination space ({to_gib(available)} GB)"
        )


class SyncIOError(SyncError):
    """Raised when a copy, move or delete fails for a reason other than absence."""

    def __init__(self, message: str, path: Path | str):
        self.path = Path(path)
        super().__init__(f"{message}: {self.path}")
