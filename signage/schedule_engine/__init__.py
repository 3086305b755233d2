"""Sign schedule rule engine package."""
from __future__ import annotations

from pathlib import Path

from . import export, extract, pins, renderer, rules, schedule, store, validate
from .schedule import Project

__all__ = [
    "schedule",
    "rules",
    "pins",
    "validate",
    "extract",
    "store",
    "export",
    "renderer",
    "load_project",
]


def load_project(store_path: Path, key: str) -> Project | None:
    """Convenience wrapper to load one project from the store at ``store_path``."""
    from .store import get_project, load_store

    return get_project(load_store(store_path), key)
