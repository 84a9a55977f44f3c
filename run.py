"""Single entry point for draftbot (same as the `draftbot` console script)."""
import sys

from draftbot.main import main

if __name__ == "__main__":
    sys.exit(main())
