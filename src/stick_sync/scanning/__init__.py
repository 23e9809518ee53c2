"""Scanning components: directory snapshots and their fingerprints."""

from stick_sync.scanning.directory_scanner import (
    DEFAULT_IGNORE,
    STAGING_DIR_NAME,
    SYSTEM_FILES,
    DirectoryScanner,
)
from stick_sync.scanning.fingerprint import Fingerprinter, compute_fingerprint, file_digest

__all__ = [
    "DEFAULT_IGNORE",
    "STAGING_DIR_NAME",
    "SYSTEM_FILES",
    "DirectoryScanner",
    "Fingerprinter",
    "compute_fingerprint",
    "file_digest",
]
