#!/usr/bin/env python3
"""AI DJ cache engine - command-line entry point.

Equivalent to the installed ``aidj-cache`` script.
"""

import sys
from pathlib import Path

# Add src directory to Python path BEFORE imports
sys.path.insert(0, str(Path(__file__).parent / "src"))

from aidj_cache.app.cli import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
