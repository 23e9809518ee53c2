#!/usr/bin/env python3
"""
Preflight checks for a stick-sync run.

Run this before plugging the sync into a script: it loads the configuration,
confirms the source folder exists, checks that the destination is present and
mounted, and compares the size of the source tree with the free space on the
stick. Nothing on either side is modified.

Usage:
    python scripts/health_check.py SOURCE [DESTINATION] [--config CONFIG_PATH] [--json]

Exit codes:
    0: Nothing failed (warnings and skipped checks are allowed)
    1: At least one check failed
"""

import argparse
import json
import sys

from stick_sync.health import HealthChecker

STATUS_MARKS = {"pass": "✓", "fail": "✗", "warn": "⚠", "skip": "○"}


def print_report(summary: dict) -> None:
    """Print the checker summary as a short human-readable report."""
    rule = "=" * 60
    status = summary["overall_status"].upper()
    print(f"\n{rule}\nPREFLIGHT: {status}  ({summary['timestamp']})\n{rule}")

    for name, result in summary["checks"].items():
        mark = STATUS_MARKS.get(result["status"], "?")
        print(f"{mark} {name.replace('_', ' ')}: {result['message']}")
        for key, value in result["details"].items():
            print(f"      {key} = {value}")

    counts = ", ".join(
        f"{summary[count]} {count}" for count in ("passed", "failed", "warnings", "skipped")
    )
    print(f"{rule}\n{counts}")


def main():
    parser = argparse.ArgumentParser(
        description="Check source, destination and free space before syncing"
    )
    parser.add_argument("source", help="Folder that mirrors the stick")
    parser.add_argument("destination", nargs="?", default=None, help="Mount point of the stick")
    parser.add_argument("--config", default=None, help="Path to a YAML configuration file")
    parser.add_argument("--json", action="store_true", help="Print the summary as JSON")
    args = parser.parse_args()

    checker = HealthChecker(
        source=args.source, destination=args.destination, config_path=args.config
    )
    all_passed = checker.run_all_checks()
    summary = checker.get_summary()

    if args.json:
        print(json.dumps(summary, indent=2))
    else:
        print_report(summary)

    sys.exit(0 if all_passed else 1)


if __name__ == "__main__":
    main()
