"""Allow ``python -m gitvendor``."""
from __future__ import annotations

import sys

from gitvendor.cli._dispatcher import main

if __name__ == "__main__":
    sys.exit(main())
