"""Module entrypoint for `python -m tourguide` (demo host window)."""

from __future__ import annotations

import sys

from .demo_host import main

if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
