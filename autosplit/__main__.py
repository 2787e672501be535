"""
Main entry point for running autosplit as a module.

Usage:
    python -m autosplit [options]
"""

from .daemon import main

if __name__ == "__main__":
    import sys

    sys.exit(main())
