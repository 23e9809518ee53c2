"""Shared fixtures for filesystem-backed sync tests."""

import logging
from pathlib import Path

import pytest
import structlog

from stick_sync.models.events import SyncEvent, SyncEventKind


class EventRecorder:
    """Listener that keeps every SyncEvent it receives."""

    def __init__(self) -> None:
        self.events: list[SyncEvent] = []

    def __call__(self, event: SyncEvent) -> None:
        self.events.append(event)

    def clear(self) -> None:
        self.events.clear()

    def of_kind(self, kind: SyncEventKind) -> list[SyncEvent]:
        return [event for event in self.events if event.kind is kind]

    def paths(self, kind: SyncEventKind) -> list[Path]:
        return [event.path for event in self.of_kind(kind)]

    def in_directory(self, directory: Path) -> list[SyncEvent]:
        """Events whose path is a direct child of directory."""
        return [event for event in self.events if event.path.parent == directory]


def write_file(path: Path, size: int, fill: bytes = b"x") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(fill * size)
    return path


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def make_file():
    return write_file


@pytest.fixture
def reset_logging():
    """Undo any logging configuration a test applied."""
    yield
    structlog.reset_defaults()
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
