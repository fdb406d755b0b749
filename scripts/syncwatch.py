#!/usr/bin/env python3
"""
SyncWatch Runner Script.

Watches SOURCE_DIR and mirrors changes into TARGET_DIR without installing
the package.
Requires Python 3.11+.

Usage:
    python scripts/syncwatch.py --env-file /path/to/.env
"""

import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from app.main import main


if __name__ == "__main__":
    sys.exit(main())
