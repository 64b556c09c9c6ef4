"""Registry of compiled example groups."""

from .world import Ordering, World

__all__ = [
    "Ordering",
    "World",
]
