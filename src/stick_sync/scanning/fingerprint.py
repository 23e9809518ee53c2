"""Order-sensitive digests of a directory's immediate membership."""

import hashlib
import unicodedata
from pathlib import Path

import structlog

from stick_sync.errors import SyncIOError
from stick_sync.models.config import FingerprintStrategy
from stick_sync.models.entry import DirectorySnapshot

log = structlog.stdlib.get_logger()

CHUNK_SIZE = 1024 * 1024

# NUL never occurs in a file name
SEPARATOR = "\0"


def compute_fingerprint(
    snapshot: DirectorySnapshot,
    strategy: FingerprintStrategy = FingerprintStrategy.SIZE,
) -> str:
    """
    Compute the fingerprint of one directory level.

    Each file contributes its name followed by its size as decimal text (or,
    with the content strategy, the SHA-256 of its bytes). The names of all
    subdirectories follow after an empty marker. The parts are joined with NUL and NFC-normalized so
    decomposed and precomposed spellings of a name hash the same. With the
    content strategy, a file deleted before it is read is left out.

    Args:
        snapshot: Snapshot of the directory
        strategy: How each file's payload is summarized

    Returns:
        Hex SHA-256 digest

    Raises:
        SyncIOError: If a file cannot be read under the content strategy
    """
    parts: list[str] = []

    for entry in snapshot.files:
        if strategy is FingerprintStrategy.CONTENT:
            try:
                payload = file_digest(snapshot.path / entry.name)
            except FileNotFoundError:
                log.debug("entry_vanished_before_digest", path=str(snapshot.path / entry.name))
                continue
        else:
            payload = str(entry.size)
        parts.extend((entry.name, payload))

    # Names and payloads are never empty; the empty part marks where subdirectories start
    parts.append("")
    parts.extend(entry.name for entry in snapshot.directories)

    joined = unicodedata.normalize("NFC", SEPARATOR.join(parts))
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()


def file_digest(path: Path) -> str:
    """
    SHA-256 of a file's content, read in chunks.

    Raises:
        FileNotFoundError: If the file does not exist
        SyncIOError: If the file exists but cannot be read
    """
    h = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                h.update(chunk)
    except FileNotFoundError:
        raise
    except OSError as e:
        log.error("file_read_failed", path=str(path), error=str(e))
        raise SyncIOError("Failed to read", path) from e
    return h.hexdigest()


class Fingerprinter:
    """Fingerprints snapshots with a single, fixed strategy."""

    def __init__(self, strategy: FingerprintStrategy = FingerprintStrategy.SIZE):
        self._strategy: FingerprintStrategy = FingerprintStrategy(strategy)

    @property
    def strategy(self) -> FingerprintStrategy:
        return self._strategy

    def fingerprint(self, snapshot: DirectorySnapshot) -> str:
        digest = compute_fingerprint(snapshot, self._strategy)
        log.debug(
            "fingerprint_computed",
            path=str(snapshot.path),
            strategy=self._strategy.value,
            fingerprint=digest,
        )
        return digest
