"""Data models for stick-sync."""

from stick_sync.models.config import (
    AppConfig,
    FingerprintStrategy,
    LoggingConfig,
    SyncSettings,
)
from stick_sync.models.entry import (
    CapacitySnapshot,
    DirectorySnapshot,
    Entry,
    EntryKind,
    to_gib,
)
from stick_sync.models.events import SyncEvent, SyncEventKind, SyncEventListener

__all__ = [
    "Entry",
    "EntryKind",
    "DirectorySnapshot",
    "CapacitySnapshot",
    "SyncEvent",
    "SyncEventKind",
    "SyncEventListener",
    "AppConfig",
    "FingerprintStrategy",
    "LoggingConfig",
    "SyncSettings",
    "to_gib",
]
