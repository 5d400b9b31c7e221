"""Restock request console: desktop client for inventory restock requests."""

__version__ = "0.1.0"
