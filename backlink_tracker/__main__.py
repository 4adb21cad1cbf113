# Allows the package to be run as a script using `python -m backlink_tracker`

from __future__ import annotations

import sys

from backlink_tracker.cli import main

if __name__ == "__main__":
    sys.exit(main())
