#!/usr/bin/env python3
"""Copy a local folder onto an MP3 stick in playback order.

Usage:
    python scripts/sync_stick.py <source folder> [<destination folder>]
    python scripts/sync_stick.py ~/Stick/ /Volumes/STICK
"""

import sys

from stick_sync.cli import main

if __name__ == "__main__":
    sys.exit(main())
