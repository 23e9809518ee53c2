"""Command-line interface for synchronizing a folder onto an MP3 stick.

Many MP3 sticks play files in the order they were copied, so whenever
anything in a folder changes, the whole folder is written again. Unchanged
files are moved aside and back instead of being copied, which is much faster
on slow removable media.

Usage:
    stick-sync <source folder> [<destination folder>]
    stick-sync ~/Stick/ /Volumes/STICK
"""

import argparse
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

import structlog

from stick_sync.device.device_inspector import DeviceInspector
from stick_sync.errors import InsufficientSpaceError, SyncError, SyncIOError
from stick_sync.models.config import AppConfig, FingerprintStrategy, SyncSettings
from stick_sync.scanning.fingerprint import Fingerprinter
from stick_sync.sync.sync_engine import SyncEngine
from stick_sync.utils.config_loader import ConfigLoader, ConfigurationError
from stick_sync.utils.logging_config import bind_run_context, configure_logging
from stick_sync.utils.retry import exponential_backoff_retry

log = structlog.stdlib.get_logger()

EXAMPLES = """
Examples:
  # Sync to the default destination (/Volumes/STICK)
  stick-sync ~/Stick/

  # Sync to an explicit destination with verbose logging
  stick-sync ~/Stick/ /media/STICK --verbose

  # Compare file contents instead of sizes
  stick-sync ~/Stick/ /Volumes/STICK --strategy content
"""


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="stick-sync",
        description="Copy a local folder onto an MP3 stick in playback order",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EXAMPLES,
    )
    parser.add_argument("source", nargs="?", help="Source folder")
    parser.add_argument("destination", nargs="?", help="Destination folder (device root)")
    parser.add_argument("--config", type=str, default=None, help="Path to configuration file")
    parser.add_argument(
        "--strategy",
        choices=[strategy.value for strategy in FingerprintStrategy],
        default=None,
        help="Fingerprint strategy (default from configuration)",
    )
    parser.add_argument(
        "--no-capacity-check",
        action="store_true",
        help="Skip the free space check before syncing",
    )
    parser.add_argument(
        "--keep-system-files",
        action="store_true",
        help="Do not delete OS junk files from the destination root",
    )
    parser.add_argument(
        "--stop-on-error",
        action="store_true",
        help="Abort on the first failing folder instead of continuing with the rest",
    )
    parser.add_argument(
        "--retries",
        type=int,
        default=None,
        help="Re-run the sync up to N times after an I/O failure",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)
    args.usage = parser.format_usage()
    return args


def setup_logging(verbose: bool, config: AppConfig) -> None:
    """Configure logging based on verbosity level and config."""
    log_level = "DEBUG" if verbose else config.logging.log_level
    configure_logging(
        log_level=log_level,
        json_logs=config.logging.json_logs,
        log_file=config.logging.log_file,
    )
    log.debug("logging_configured", log_level=log_level, json_logs=config.logging.json_logs)


def apply_overrides(settings: SyncSettings, args: argparse.Namespace) -> SyncSettings:
    """Merge command-line flags over configured sync settings."""
    overrides: dict[str, Any] = {}
    if args.strategy is not None:
        overrides["fingerprint_strategy"] = FingerprintStrategy(args.strategy)
    if args.no_capacity_check:
        overrides["check_capacity"] = False
    if args.keep_system_files:
        overrides["remove_system_files"] = False
    if args.stop_on_error:
        overrides["continue_on_error"] = False
    if args.retries is not None:
        overrides["max_retries"] = args.retries

    return SyncSettings.model_validate({**settings.model_dump(), **overrides})


def perform_sync(source: str, destination: str, settings: SyncSettings) -> dict:
    """
    Synchronize a source folder onto a destination device.

    Args:
        source: Source folder
        destination: Destination folder, usually the device mount point
        settings: Effective sync settings

    Returns:
        Dictionary with sync statistics
    """
    start_time = datetime.now()
    bind_run_context(source=source, destination=destination)

    def failure(error: str, **extra: Any) -> dict:
        end_time = datetime.now()
        return {
            "success": False,
            "error": error,
            "start_time": start_time.isoformat(),
            "end_time": end_time.isoformat(),
            "duration_seconds": (end_time - start_time).total_seconds(),
            **extra,
        }

    inspector = DeviceInspector(destination)
    if not inspector.exists():
        log.error("destination_missing", destination=destination)
        return failure(f"{destination} is not mounted")

    if not inspector.is_mounted():
        print(f"Warning: {destination} is not a mount point", file=sys.stderr)

    if settings.remove_system_files:
        inspector.remove_system_files()

    engine = SyncEngine(
        fingerprinter=Fingerprinter(settings.fingerprint_strategy),
        continue_on_error=settings.continue_on_error,
    )

    run = engine.sync_tree
    if settings.max_retries > 0:
        run = exponential_backoff_retry(
            max_retries=settings.max_retries,
            base_delay=settings.retry_base_delay,
            exceptions=(SyncIOError,),
        )(engine.sync_tree)

    try:
        report = run(source, destination, check_capacity=settings.check_capacity)
    except InsufficientSpaceError as e:
        return failure(str(e), required_bytes=e.required, available_bytes=e.available)
    except SyncError as e:
        log.error("sync_failed", error=str(e))
        return failure(str(e))

    stats = {
        "success": report.success,
        "strategy": settings.fingerprint_strategy.value,
        "directories_visited": report.directories_visited,
        "directories_rebuilt": report.directories_rebuilt,
        "directories_created": report.directories_created,
        "files_copied": report.files_copied,
        "files_restored": report.files_restored,
        "files_deleted": report.files_deleted,
        "bytes_copied": report.bytes_copied,
        "errors": list(report.errors),
        "start_time": start_time.isoformat(),
        "end_time": datetime.now().isoformat(),
        "duration_seconds": report.duration_seconds,
    }
    if not report.success:
        stats["error"] = f"{len(report.errors)} folder(s) failed"

    log.info("sync_finished", success=report.success, files_copied=report.files_copied)
    return stats


def print_summary(stats: dict) -> None:
    print("\n" + "=" * 60)
    print("SYNCHRONIZATION SUMMARY")
    print("=" * 60)

    if stats.get("success"):
        print("Status: ✓ SUCCESS")
    else:
        print("Status: ✗ FAILED")
        print(f"Error: {stats.get('error', 'Unknown error')}")

    if "files_copied" in stats:
        print(f"Strategy: {stats.get('strategy', 'unknown')}")
        print(f"Folders Visited: {stats.get('directories_visited', 0)}")
        print(f"Folders Rebuilt: {stats.get('directories_rebuilt', 0)}")
        print(f"Files Copied: {stats.get('files_copied', 0)}")
        print(f"Files Restored: {stats.get('files_restored', 0)}")
        print(f"Files Deleted: {stats.get('files_deleted', 0)}")
        for error in stats.get("errors", []):
            print(f"  ! {error}")

    print(f"Duration: {stats.get('duration_seconds', 0):.2f} seconds")
    print("=" * 60)


def main(argv: list[str] | None = None) -> int:
    """Main entry point; returns the process exit code."""
    args = parse_arguments(argv)

    try:
        config = ConfigLoader().load_config(args.config)
        settings = apply_overrides(config.sync, args)
    except (ConfigurationError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(args.verbose, config)

    if not args.source or not Path(args.source).is_dir():
        print(args.usage, end="", file=sys.stderr)
        print(EXAMPLES, file=sys.stderr)
        return 1

    destination = args.destination or settings.default_destination

    stats = perform_sync(args.source, destination, settings)
    print_summary(stats)

    return 0 if stats.get("success") else 1


if __name__ == "__main__":
    sys.exit(main())
