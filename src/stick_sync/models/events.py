"""Events emitted for every mutating filesystem action."""

from enum import Enum
from pathlib import Path
from typing import Callable

from pydantic import BaseModel, ConfigDict, Field


class SyncEventKind(str, Enum):
    """Kinds of mutating actions performed during a sync."""

    MKDIR = "mkdir"
    COPY = "copy"
    DELETE = "delete"
    BACKUP = "backup"
    RESTORE = "restore"
    CLEAR = "clear"


class SyncEvent(BaseModel):
    """A single mutating action and the path it affected."""

    model_config = ConfigDict(frozen=True)

    kind: SyncEventKind = Field(default=..., description="Kind of action")
    path: Path = Field(default=..., description="Affected path")
    size: int = Field(default=0, ge=0, description="Bytes moved, for copies")

    def __str__(self) -> str:
        return f"{self.kind.value}\t{self.path}"


SyncEventListener = Callable[[SyncEvent], None]
