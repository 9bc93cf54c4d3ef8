#!/usr/bin/env python3
"""Intrinsic Calibration Launcher

This script sets up the Python path and launches the interactive calibration.

Usage:
    python launch_calibration.py
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

if __name__ == "__main__":
    from app.cli import main
    sys.exit(main())
