"""Synchronization components for rebuilding destination directories."""

from stick_sync.sync.capacity_guard import CapacityGuard, directory_size, free_space
from stick_sync.sync.models import SyncReport
from stick_sync.sync.sync_engine import SyncEngine, log_event

__all__ = [
    "CapacityGuard",
    "SyncEngine",
    "SyncReport",
    "directory_size",
    "free_space",
    "log_event",
]
