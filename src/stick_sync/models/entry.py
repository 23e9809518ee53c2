"""Pydantic models for directory entries, snapshots and capacity figures."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

BYTES_PER_GIB = 1024**3


class EntryKind(str, Enum):
    """Classification of a directory child."""

    FILE = "file"
    DIRECTORY = "directory"


class Entry(BaseModel):
    """A single child of a directory, identified by its name."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(default=..., min_length=1, description="Entry name within its parent")
    kind: EntryKind = Field(default=..., description="File or directory")
    size: int = Field(default=0, ge=0, description="Size in bytes (0 for directories)")

    @property
    def is_file(self) -> bool:
        """Check if the entry is a file."""
        return self.kind is EntryKind.FILE

    @property
    def is_directory(self) -> bool:
        """Check if the entry is a directory."""
        return self.kind is EntryKind.DIRECTORY


class DirectorySnapshot(BaseModel):
    """Ordered, filtered listing of a directory's immediate children.

    The order is significant: it is both the fingerprint input and the order
    in which entries are re-created on the destination.
    """

    model_config = ConfigDict(frozen=True)

    path: Path = Field(default=..., description="Directory that was scanned")
    entries: tuple[Entry, ...] = Field(
        default_factory=tuple, description="Children sorted by case-insensitive name"
    )

    @property
    def files(self) -> list[Entry]:
        """Files in snapshot order."""
        return [entry for entry in self.entries if entry.is_file]

    @property
    def directories(self) -> list[Entry]:
        """Subdirectories in snapshot order."""
        return [entry for entry in self.entries if entry.is_directory]

    def __len__(self) -> int:
        return len(self.entries)


class CapacitySnapshot(BaseModel):
    """Source size versus free destination space, measured once before a sync."""

    model_config = ConfigDict(frozen=True)

    source_bytes: int = Field(default=..., ge=0, description="Total size of the source tree")
    destination_free_bytes: int = Field(
        default=..., ge=0, description="Free space on the destination volume"
    )

    @property
    def required(self) -> int:
        return self.source_bytes

    @property
    def available(self) -> int:
        return self.destination_free_bytes

    @property
    def fits(self) -> bool:
        """Check if the source fits on the destination."""
        return self.required <= self.available

    @property
    def required_gib(self) -> float:
        return to_gib(self.required)

    @property
    def available_gib(self) -> float:
        return to_gib(self.available)


def to_gib(num_bytes: int) -> float:
    """Convert bytes to gibibytes, rounded to two decimals."""
    return round(num_bytes / BYTES_PER_GIB, 2)
