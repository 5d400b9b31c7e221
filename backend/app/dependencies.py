"""Reusable FastAPI dependencies."""
from __future__ import annotations

from .config import Settings, get_settings
from .store import RestockStore, store


def get_store() -> RestockStore:
    """Dependency that returns the process-wide demo store."""
    return store


def get_app_settings() -> Settings:
    return get_settings()
