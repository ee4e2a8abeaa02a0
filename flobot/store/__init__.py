"""
Persistence

The instance passes the store through untouched; handlers use it.
"""

from .base import Edit, EditStore, Trigger, TriggerStore
from .sqlite import SQLiteStore

__all__ = [
    "Edit",
    "EditStore",
    "Trigger",
    "TriggerStore",
    "SQLiteStore",
]
