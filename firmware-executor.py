#!/usr/bin/env python3
"""
Firmware Executor
=================

Pushes firmware images to Redfish management controllers on your local
network, skipping devices that already run the requested version.

Requirements:
- Python 3.9+
- pip install requests pydantic pydantic-settings

Usage:
    python firmware-executor.py --host 10.0.0.5 --username root --password secret \
        apply --name BIOS --version 2.23.0 --local-file BIOS_2.23.0.bin
"""

import sys
from pathlib import Path

# Ensure the firmware_executor package is importable when this script is run directly
SCRIPT_DIR = Path(__file__).resolve().parent
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

from firmware_executor.cli import main

if __name__ == "__main__":
    sys.exit(main())
