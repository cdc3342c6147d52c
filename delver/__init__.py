"""Delver: a deterministic turn-based dungeon crawl."""

__version__ = "0.1.0"
