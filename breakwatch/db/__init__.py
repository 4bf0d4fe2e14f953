"""Persistence layer for BreakWatch."""

from breakwatch.db.store import DataStore

__all__ = ["DataStore"]
