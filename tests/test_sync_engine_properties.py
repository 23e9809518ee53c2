"""Property-based tests for the synchronization engine.

Feature: stick-sync
"""

import os
import shutil
import tempfile
from pathlib import Path

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from stick_sync.errors import DirectoryNotFoundError, SyncIOError
from stick_sync.models.config import FingerprintStrategy
from stick_sync.models.events import SyncEventKind
from stick_sync.scanning.directory_scanner import DEFAULT_IGNORE, DirectoryScanner
from stick_sync.scanning.fingerprint import Fingerprinter
from stick_sync.sync.sync_engine import SyncEngine

from conftest import EventRecorder, write_file

names = st.text(alphabet="abcdefgh", min_size=1, max_size=3)
sizes = st.integers(min_value=0, max_value=64)
trees = st.recursive(
    st.dictionaries(names, sizes, max_size=3),
    lambda children: st.dictionaries(names, st.one_of(sizes, children), max_size=4),
    max_leaves=12,
)


def build_tree(root: Path, tree: dict) -> None:
    root.mkdir(parents=True, exist_ok=True)
    for name, value in tree.items():
        if isinstance(value, dict):
            build_tree(root / name, value)
        else:
            write_file(root / name, value)


def read_tree(root: Path) -> dict:
    tree = {}
    for name in os.listdir(root):
        path = root / name
        tree[name] = read_tree(path) if path.is_dir() else path.stat().st_size
    return tree


def count_files(tree: dict) -> int:
    return sum(count_files(v) if isinstance(v, dict) else 1 for v in tree.values())


@pytest.fixture
def roots(tmp_path: Path) -> tuple[Path, Path]:
    source = tmp_path / "source"
    destination = tmp_path / "stick"
    source.mkdir()
    destination.mkdir()
    return source, destination


def make_engine(recorder: EventRecorder, **kwargs) -> SyncEngine:
    return SyncEngine(listener=recorder, **kwargs)


def test_bootstrap_copies_in_source_order(roots, make_file, recorder):
    source, destination = roots
    make_file(source / "02.mp3", 20)
    make_file(source / "01.mp3", 10)
    make_file(source / "Album" / "t2.mp3", 2)
    make_file(source / "Album" / "t1.mp3", 1)

    report = make_engine(recorder).sync_tree(source, destination)

    assert [(e.kind, e.path) for e in recorder.events] == [
        (SyncEventKind.COPY, destination / "01.mp3"),
        (SyncEventKind.COPY, destination / "02.mp3"),
        (SyncEventKind.MKDIR, destination / "Album"),
        (SyncEventKind.COPY, destination / "Album" / "t1.mp3"),
        (SyncEventKind.COPY, destination / "Album" / "t2.mp3"),
    ]
    assert report.files_copied == 4
    assert report.bytes_copied == 33
    assert report.directories_created == 1
    assert report.entries_backed_up == 0
    assert report.staging_areas_cleared == 0
    assert read_tree(destination) == read_tree(source)


def test_second_run_performs_no_mutations(roots, make_file, recorder):
    source, destination = roots
    make_file(source / "01.mp3", 10)
    make_file(source / "Album" / "t1.mp3", 1)
    engine = make_engine(recorder)
    engine.sync_tree(source, destination)
    recorder.clear()

    report = engine.sync_tree(source, destination)

    assert recorder.events == []
    assert report.total_mutations == 0
    assert report.directories_skipped == 2
    assert report.directories_rebuilt == 0
    assert report.success


def test_unchanged_level_is_not_touched(roots, make_file, recorder):
    source, destination = roots
    make_file(source / "01.mp3", 10)
    make_file(source / "Album" / "t1.mp3", 1)
    make_file(destination / "01.mp3", 10)
    make_file(destination / "Album" / "t1.mp3", 1)
    make_file(destination / "Album" / "extra.mp3", 1)

    report = make_engine(recorder).sync_tree(source, destination)

    assert recorder.in_directory(destination) == []
    assert report.directories_skipped == 1
    assert report.directories_rebuilt == 1
    assert sorted(os.listdir(destination / "Album")) == ["t1.mp3"]


def test_staging_area_is_gone_after_run(roots, make_file, recorder):
    source, destination = roots
    make_file(source / "Album" / "new.mp3", 3)
    make_file(destination / "Album" / "old.mp3", 3)
    make_file(destination / "stale.mp3", 3)

    report = make_engine(recorder).sync_tree(source, destination)

    for dirpath, dirnames, _filenames in os.walk(destination):
        assert ".tmp" not in dirnames, dirpath
    assert report.staging_areas_cleared == 2
    assert read_tree(destination) == {"Album": {"new.mp3": 3}}


def test_unchanged_files_are_restored_not_copied(roots, make_file, recorder):
    source, destination = roots
    make_file(source / "Album" / "01.mp3", 7)
    make_file(source / "bonus.mp3", 4)
    make_file(destination / "Album" / "01.mp3", 7)

    report = make_engine(recorder).sync_tree(source, destination)

    assert recorder.paths(SyncEventKind.COPY) == [destination / "bonus.mp3"]
    assert recorder.paths(SyncEventKind.RESTORE) == [destination / "Album" / "01.mp3"]
    assert report.files_copied == 1
    assert read_tree(destination) == read_tree(source)


def test_size_mismatch_replaces_restored_file(roots, make_file, recorder):
    source, destination = roots
    make_file(source / "track05.mp3", 6_000_000)
    make_file(destination / "track05.mp3", 5_000_000)
    target = destination / "track05.mp3"

    report = make_engine(recorder).sync_tree(source, destination)

    assert [(e.kind, e.path) for e in recorder.events] == [
        (SyncEventKind.BACKUP, target),
        (SyncEventKind.RESTORE, target),
        (SyncEventKind.DELETE, target),
        (SyncEventKind.COPY, target),
        (SyncEventKind.CLEAR, destination / ".tmp"),
    ]
    assert target.stat().st_size == 6_000_000
    assert report.files_deleted == 1


def test_size_mismatch_with_prestaged_file(roots, make_file, recorder):
    source, destination = roots
    make_file(source / "track05.mp3", 6_000_000)
    make_file(destination / ".tmp" / "track05.mp3", 5_000_000)
    target = destination / "track05.mp3"

    make_engine(recorder).sync_tree(source, destination)

    assert [e.kind for e in recorder.events] == [
        SyncEventKind.RESTORE,
        SyncEventKind.DELETE,
        SyncEventKind.COPY,
        SyncEventKind.CLEAR,
    ]
    assert target.stat().st_size == 6_000_000
    assert not (destination / ".tmp").exists()


def test_rename_keeps_survivor_and_copies_newcomer(roots, make_file, recorder):
    source, destination = roots
    make_file(source / "a.mp3", 5)
    make_file(source / "z.mp3", 6)
    make_file(destination / "a.mp3", 5)
    make_file(destination / "b.mp3", 6)

    make_engine(recorder).sync_tree(source, destination)

    assert [(e.kind, e.path.name) for e in recorder.events] == [
        (SyncEventKind.BACKUP, "a.mp3"),
        (SyncEventKind.BACKUP, "b.mp3"),
        (SyncEventKind.RESTORE, "a.mp3"),
        (SyncEventKind.COPY, "z.mp3"),
        (SyncEventKind.CLEAR, ".tmp"),
    ]
    assert sorted(os.listdir(destination)) == ["a.mp3", "z.mp3"]


def test_interrupted_run_resumes_from_staging(roots, make_file, recorder):
    source, destination = roots
    for name in ["01.mp3", "02.mp3", "03.mp3"]:
        make_file(source / name, 9)
        make_file(destination / ".tmp" / name, 9)

    report = make_engine(recorder).sync_tree(source, destination)

    assert report.files_copied == 0
    assert report.files_restored == 3
    assert sorted(os.listdir(destination)) == ["01.mp3", "02.mp3", "03.mp3"]


def test_resume_prefers_staged_copy_over_partial_file(roots, make_file, recorder):
    source, destination = roots
    make_file(source / "01.mp3", 5)
    make_file(destination / ".tmp" / "01.mp3", 5)
    make_file(destination / "01.mp3", 3)

    make_engine(recorder).sync_tree(source, destination)

    assert [e.kind for e in recorder.events] == [SyncEventKind.RESTORE, SyncEventKind.CLEAR]
    assert (destination / "01.mp3").stat().st_size == 5


def test_entry_shadowed_by_staging_is_removed_on_next_run(roots, make_file, recorder):
    source, destination = roots
    make_file(source / "keep.mp3", 1)
    make_file(destination / ".tmp" / "gone.mp3", 2)
    make_file(destination / "gone.mp3", 2)
    engine = make_engine(recorder)

    engine.sync_tree(source, destination)
    assert sorted(os.listdir(destination)) == ["gone.mp3", "keep.mp3"]

    engine.sync_tree(source, destination)
    assert sorted(os.listdir(destination)) == ["keep.mp3"]


def test_content_strategy_replaces_same_size_change(roots, make_file, recorder):
    source, destination = roots
    make_file(source / "song.mp3", 16, fill=b"b")
    make_file(destination / "song.mp3", 16, fill=b"a")

    size_report = make_engine(recorder).sync_tree(source, destination)
    assert size_report.total_mutations == 0

    engine = make_engine(recorder, fingerprinter=Fingerprinter(FingerprintStrategy.CONTENT))
    report = engine.sync_tree(source, destination)

    assert report.files_deleted == 1
    assert report.files_copied == 1
    assert (destination / "song.mp3").read_bytes() == b"b" * 16


def test_file_replaced_by_directory_and_back(roots, make_file, recorder):
    source, destination = roots
    make_file(source / "item" / "inner.mp3", 2)
    make_file(destination / "item", 4)
    engine = make_engine(recorder)

    engine.sync_tree(source, destination)
    assert read_tree(destination) == {"item": {"inner.mp3": 2}}

    shutil.rmtree(source / "item")
    make_file(source / "item", 4)

    engine.sync_tree(source, destination)
    assert read_tree(destination) == {"item": 4}


def test_failing_subtree_is_recorded_and_siblings_continue(roots, make_file, monkeypatch):
    source, destination = roots
    make_file(source / "Bad" / "01.mp3", 1)
    make_file(source / "Good" / "01.mp3", 1)
    real_copyfile = shutil.copyfile

    def flaky_copyfile(src, dst, *args, **kwargs):
        if Path(dst).parent.name == "Bad":
            raise PermissionError("write protected")
        return real_copyfile(src, dst, *args, **kwargs)

    monkeypatch.setattr("stick_sync.sync.sync_engine.shutil.copyfile", flaky_copyfile)

    report = SyncEngine(listener=None).sync_tree(source, destination)

    assert not report.success
    assert len(report.errors) == 1
    assert "Bad" in report.errors[0]
    assert (destination / "Good" / "01.mp3").is_file()
    assert report.end_time is not None


def test_stop_on_error_propagates(roots, make_file, monkeypatch):
    source, destination = roots
    make_file(source / "Bad" / "01.mp3", 1)

    def failing_copyfile(src, dst, *args, **kwargs):
        raise PermissionError("write protected")

    monkeypatch.setattr("stick_sync.sync.sync_engine.shutil.copyfile", failing_copyfile)
    engine = SyncEngine(listener=None, continue_on_error=False)

    with pytest.raises(SyncIOError) as exc_info:
        engine.sync_tree(source, destination)

    assert exc_info.value.path == source / "Bad" / "01.mp3"


def test_root_level_failure_propagates(roots, make_file, monkeypatch):
    source, destination = roots
    make_file(source / "01.mp3", 1)

    def failing_copyfile(src, dst, *args, **kwargs):
        raise OSError("device disconnected")

    monkeypatch.setattr("stick_sync.sync.sync_engine.shutil.copyfile", failing_copyfile)
    engine = SyncEngine(listener=None)

    with pytest.raises(SyncIOError, match="Failed to copy"):
        engine.sync_tree(source, destination)

    assert engine.report.end_time is not None


def test_unreadable_file_fails_its_subtree_only(roots, make_file, monkeypatch):
    source, destination = roots
    make_file(source / "bad" / "x.mp3", 4)
    make_file(source / "good" / "y.mp3", 4)
    locked = source / "bad" / "x.mp3"

    def guarded_open(path, *args, **kwargs):
        if Path(path) == locked:
            raise PermissionError(13, "Permission denied", str(path))
        return open(path, *args, **kwargs)

    monkeypatch.setattr("stick_sync.scanning.fingerprint.open", guarded_open, raising=False)
    engine = SyncEngine(listener=None, fingerprinter=Fingerprinter(FingerprintStrategy.CONTENT))

    report = engine.sync_tree(source, destination)

    assert not report.success
    assert len(report.errors) == 1
    assert "bad" in report.errors[0]
    assert (destination / "good" / "y.mp3").read_bytes() == b"xxxx"


def test_dangling_destination_link_is_replaced(roots, make_file, recorder):
    source, destination = roots
    make_file(source / "a.mp3", 5)
    (destination / "a.mp3").symlink_to(destination / "missing.mp3")
    engine = make_engine(recorder)

    engine.sync_tree(source, destination)

    assert not (destination / "a.mp3").is_symlink()
    assert (destination / "a.mp3").stat().st_size == 5
    assert recorder.paths(SyncEventKind.DELETE) == [destination / "a.mp3"]
    assert recorder.paths(SyncEventKind.COPY) == [destination / "a.mp3"]

    assert engine.sync_tree(source, destination).total_mutations == 0


def test_missing_roots_raise(tmp_path: Path):
    (tmp_path / "present").mkdir()
    engine = SyncEngine(listener=None)

    with pytest.raises(DirectoryNotFoundError) as exc_info:
        engine.sync_tree(tmp_path / "missing", tmp_path / "present")
    assert exc_info.value.path == tmp_path / "missing"

    with pytest.raises(DirectoryNotFoundError) as exc_info:
        engine.sync_tree(tmp_path / "present", tmp_path / "missing")
    assert exc_info.value.path == tmp_path / "missing"


def test_staging_name_must_be_ignored_by_scanner():
    with pytest.raises(ValueError):
        SyncEngine(staging_name=".staging")

    scanner = DirectoryScanner(ignore=DEFAULT_IGNORE | {".staging"})
    assert SyncEngine(scanner=scanner, staging_name=".staging") is not None


def test_system_files_on_destination_are_left_alone(roots, make_file, recorder):
    source, destination = roots
    make_file(source / "01.mp3", 1)
    make_file(destination / "01.mp3", 1)
    make_file(destination / ".DS_Store", 1)
    make_file(destination / "MUSICBMK.BMK", 1)

    report = make_engine(recorder).sync_tree(source, destination)

    assert report.total_mutations == 0
    assert (destination / "MUSICBMK.BMK").is_file()


@given(source_tree=trees, destination_tree=trees)
@settings(
    max_examples=30,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
def test_property_sync_converges_to_source(source_tree: dict, destination_tree: dict):
    """For any two trees, one sync makes the destination mirror the source and a second is a no-op."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        source = Path(tmp_dir) / "source"
        destination = Path(tmp_dir) / "stick"
        build_tree(source, source_tree)
        build_tree(destination, destination_tree)
        engine = SyncEngine(listener=None)

        engine.sync_tree(source, destination, check_capacity=False)

        assert read_tree(destination) == read_tree(source)
        assert engine.report.success

        second = engine.sync_tree(source, destination, check_capacity=False)

        assert second.total_mutations == 0
        assert second.directories_rebuilt == 0


@given(source_tree=trees)
@settings(max_examples=30, deadline=None)
def test_property_bootstrap_copies_every_file_once(source_tree: dict):
    """For any tree, syncing onto an empty destination copies each file exactly once."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        source = Path(tmp_dir) / "source"
        destination = Path(tmp_dir) / "stick"
        build_tree(source, source_tree)
        destination.mkdir()
        recorder = EventRecorder()

        report = SyncEngine(listener=recorder).sync_tree(source, destination, check_capacity=False)

        assert report.files_copied == count_files(source_tree)
        assert len(set(recorder.paths(SyncEventKind.COPY))) == report.files_copied
        assert recorder.of_kind(SyncEventKind.BACKUP) == []
