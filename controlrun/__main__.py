"""
Allow running controls as a module.

Usage:
    python -m controlrun controls.py
"""

from .cli import main
import sys

if __name__ == "__main__":
    sys.exit(main())
