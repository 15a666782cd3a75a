#!/usr/bin/env python3
"""
Spray K-Means CLI entry point for running from a checkout.

Usage:
    python scripts/spraykmeans.py run 50 --k 4 --seed 7
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from spraykmeans.cli import main


if __name__ == "__main__":
    sys.exit(main())
