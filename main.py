#!/usr/bin/env python3
"""
eftp
Main entry point when running from a source checkout
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / 'src'))

from eftp.main import main


if __name__ == "__main__":
    sys.exit(main())
