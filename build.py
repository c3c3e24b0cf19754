#!/usr/bin/env python3
from __future__ import annotations

import sys

try:
    from hunim.cli import main
except ImportError:
    print("Missing dependencies. Install with pip install -e .", file=sys.stderr)
    sys.exit(1)

if __name__ == "__main__":
    sys.exit(main())
