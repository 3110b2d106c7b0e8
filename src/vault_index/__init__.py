"""Incremental embedding index and similarity search for a note vault."""

__version__ = "0.1.0"
