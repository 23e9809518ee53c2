"""Property-based tests for logging functionality.

This module tests that log entries written through configure_logging()
contain the fields needed to follow a sync afterwards:
- timestamp
- severity level
- event name and call site
- the run context (source and destination roots)
"""

import json
from contextlib import redirect_stderr
from datetime import datetime
from io import StringIO
from pathlib import Path

import pytest
import structlog
from hypothesis import given, settings
from hypothesis import strategies as st

from stick_sync.models.events import SyncEvent, SyncEventKind
from stick_sync.sync.sync_engine import log_event
from stick_sync.utils.logging_config import bind_run_context, configure_logging


def capture_json_logs(log_level: str = "DEBUG") -> StringIO:
    """Configure JSON logging into a fresh buffer."""
    buffer = StringIO()
    with redirect_stderr(buffer):
        configure_logging(log_level=log_level, json_logs=True)
    return buffer


def parse_entries(buffer: StringIO) -> list[dict]:
    return [json.loads(line) for line in buffer.getvalue().splitlines() if line.strip()]


@given(
    log_level=st.sampled_from(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    error_message=st.text(min_size=1, max_size=200),
)
@settings(max_examples=50, deadline=None)
def test_log_entries_contain_required_fields(log_level: str, error_message: str) -> None:
    """
    For any level and message, a log entry carries timestamp, level, event
    name, logger name and call site.
    """
    buffer = capture_json_logs()
    try:
        log = structlog.stdlib.get_logger("stick_sync.test")
        getattr(log, log_level.lower())("test_event", error=error_message)

        entries = parse_entries(buffer)
    finally:
        structlog.reset_defaults()

    assert len(entries) == 1
    entry = entries[0]

    datetime.fromisoformat(entry["timestamp"].replace("Z", "+00:00"))
    assert entry["level"].upper() == log_level
    assert entry["event"] == "test_event"
    assert entry["error"] == error_message
    assert entry["logger"] == "stick_sync.test"
    assert entry["func_name"] == "test_log_entries_contain_required_fields"
    assert entry["filename"] == "test_logging_properties.py"
    assert isinstance(entry["lineno"], int)


@given(
    source=st.text(min_size=1, max_size=40),
    destination=st.text(min_size=1, max_size=40),
)
@settings(max_examples=30, deadline=None)
def test_run_context_is_attached_to_every_entry(source: str, destination: str) -> None:
    """For any pair of roots, entries logged after binding carry both of them."""
    buffer = capture_json_logs()
    try:
        bind_run_context(source=source, destination=destination)
        log = structlog.stdlib.get_logger("stick_sync.test")
        log.info("first")
        log.warning("second", extra_key=1)

        entries = parse_entries(buffer)
    finally:
        structlog.contextvars.clear_contextvars()
        structlog.reset_defaults()

    assert [entry["event"] for entry in entries] == ["first", "second"]
    for entry in entries:
        assert entry["source"] == source
        assert entry["destination"] == destination


def test_rebinding_replaces_previous_run_context(reset_logging) -> None:
    buffer = capture_json_logs()
    bind_run_context(source="/a", destination="/b")
    bind_run_context(source="/c", destination="/d")

    structlog.stdlib.get_logger("stick_sync.test").info("event")
    structlog.contextvars.clear_contextvars()

    (entry,) = parse_entries(buffer)
    assert entry["source"] == "/c"
    assert entry["destination"] == "/d"


def test_level_filtering(reset_logging) -> None:
    buffer = capture_json_logs(log_level="WARNING")

    log = structlog.stdlib.get_logger("stick_sync.test")
    log.info("hidden")
    log.warning("shown")

    assert [entry["event"] for entry in parse_entries(buffer)] == ["shown"]


def test_sync_event_is_logged_with_kind_and_path(reset_logging, monkeypatch) -> None:
    buffer = capture_json_logs()
    # A module-level logger cached by an earlier configuration would bypass the buffer
    monkeypatch.setattr("stick_sync.sync.sync_engine.log", structlog.stdlib.get_logger())

    log_event(SyncEvent(kind=SyncEventKind.COPY, path=Path("/Volumes/STICK/a.mp3"), size=3))

    events = [entry for entry in parse_entries(buffer) if entry["event"] == "sync_event"]
    assert events[0]["kind"] == "copy"
    assert events[0]["path"] == "/Volumes/STICK/a.mp3"


def test_console_format_is_not_json(reset_logging) -> None:
    buffer = StringIO()
    with redirect_stderr(buffer):
        configure_logging(log_level="INFO", json_logs=False)

    structlog.stdlib.get_logger("stick_sync.test").info("console_event", answer=42)

    output = buffer.getvalue()
    assert "console_event" in output
    assert "answer" in output
    with pytest.raises(json.JSONDecodeError):
        json.loads(output)


def test_log_file_receives_entries(tmp_path: Path, reset_logging) -> None:
    log_file = tmp_path / "sync.log"
    with redirect_stderr(StringIO()):
        configure_logging(log_level="INFO", json_logs=True, log_file=str(log_file))

    structlog.stdlib.get_logger("stick_sync.test").info("file_event", count=3)

    lines = log_file.read_text(encoding="utf-8").splitlines()
    entry = json.loads(lines[-1])
    assert entry["event"] == "file_event"
    assert entry["count"] == 3
