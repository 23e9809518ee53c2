"""Data models for synchronization results."""

from datetime import datetime

from pydantic import BaseModel, Field

from stick_sync.models.events import SyncEvent, SyncEventKind


class SyncReport(BaseModel):
    """Report of synchronization operation results."""

    source_root: str = Field(..., description="Source tree that was synced")
    destination_root: str = Field(..., description="Destination tree that was written")
    directories_visited: int = Field(default=0, ge=0, description="Directory pairs compared")
    directories_rebuilt: int = Field(default=0, ge=0, description="Levels whose fingerprint differed")
    directories_skipped: int = Field(default=0, ge=0, description="Levels whose fingerprint matched")
    directories_created: int = Field(default=0, ge=0, description="Directories created")
    files_copied: int = Field(default=0, ge=0, description="Files copied from the source")
    files_restored: int = Field(default=0, ge=0, description="Entries moved back from staging")
    files_deleted: int = Field(default=0, ge=0, description="Restored files deleted on size mismatch")
    entries_backed_up: int = Field(default=0, ge=0, description="Entries moved into staging")
    staging_areas_cleared: int = Field(default=0, ge=0, description="Staging areas removed")
    bytes_copied: int = Field(default=0, ge=0, description="Bytes copied from the source")
    duration_seconds: float = Field(default=0.0, ge=0.0, description="Sync duration in seconds")
    start_time: datetime = Field(default_factory=datetime.now, description="Sync start timestamp")
    end_time: datetime | None = Field(default=None, description="Sync end timestamp")
    errors: list[str] = Field(
        default_factory=list, description="Subtrees that failed while the walk continued"
    )

    @property
    def total_mutations(self) -> int:
        """Get total number of mutating filesystem actions."""
        return (
            self.directories_created
            + self.files_copied
            + self.files_restored
            + self.files_deleted
            + self.entries_backed_up
            + self.staging_areas_cleared
        )

    @property
    def success(self) -> bool:
        """Check if sync completed without errors."""
        return len(self.errors) == 0

    def record(self, event: SyncEvent) -> None:
        """Count a mutating action."""
        if event.kind is SyncEventKind.MKDIR:
            self.directories_created += 1
        elif event.kind is SyncEventKind.COPY:
            self.files_copied += 1
            self.bytes_copied += event.size
        elif event.kind is SyncEventKind.DELETE:
            self.files_deleted += 1
        elif event.kind is SyncEventKind.BACKUP:
            self.entries_backed_up += 1
        elif event.kind is SyncEventKind.RESTORE:
            self.files_restored += 1
        elif event.kind is SyncEventKind.CLEAR:
            self.staging_areas_cleared += 1

    def finish(self) -> None:
        self.end_time = datetime.now()
        self.duration_seconds = (self.end_time - self.start_time).total_seconds()
