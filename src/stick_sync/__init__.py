"""stick-sync: copy a folder tree onto a device that plays files in write order."""

from stick_sync.errors import (
    DirectoryNotFoundError,
    InsufficientSpaceError,
    SyncError,
    SyncIOError,
)
from stick_sync.scanning import DEFAULT_IGNORE, DirectoryScanner, Fingerprinter
from stick_sync.storage import StagingArea
from stick_sync.sync import CapacityGuard, SyncEngine, SyncReport

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "CapacityGuard",
    "DEFAULT_IGNORE",
    "DirectoryNotFoundError",
    "DirectoryScanner",
    "Fingerprinter",
    "InsufficientSpaceError",
    "StagingArea",
    "SyncEngine",
    "SyncError",
    "SyncIOError",
    "SyncReport",
]
