"""Thicket: linked notes, backlinks, a note graph and fuzzy search."""

__version__ = "0.1.0"
