"""Project root entry point for the mdbuilder command line."""

from __future__ import annotations

import sys

from mdbuilder.cli import main


if __name__ == "__main__":
    sys.exit(main())
