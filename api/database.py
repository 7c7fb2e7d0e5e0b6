"""
Database access for FastAPI.

A single SqlitePhotoStore per process; its sqlite3 calls run in the default
executor for async compatibility.
"""

from db import DEFAULT_DB_PATH
from gallery.store import SqlitePhotoStore

_store = None


def get_store():
    """FastAPI dependency returning the shared photo store."""
    global _store
    if _store is None:
        _store = SqlitePhotoStore(DEFAULT_DB_PATH)
    return _store


def set_store(store):
    """Swap the shared store (tests point it at a temporary database)."""
    global _store
    _store = store
