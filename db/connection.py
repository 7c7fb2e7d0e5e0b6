"""
SQLite connections for the gallery database.

Every connection gets the same PRAGMA set: WAL journaling, a busy timeout and
the cache/mmap sizes from the performance section of gallery_config.json.
"""

import os
import sqlite3
from contextlib import contextmanager

from config import PERFORMANCE

DEFAULT_DB_PATH = os.environ.get('DB_PATH', 'gallery.db')

_FIXED_PRAGMAS = (
    ('journal_mode', 'WAL'),
    ('busy_timeout', 5000),
    ('foreign_keys', 'ON'),
    ('synchronous', 'NORMAL'),
    ('temp_store', 'MEMORY'),
)


def apply_pragmas(conn, performance=None):
    """Apply the gallery PRAGMA settings to a connection.

    Args:
        conn: SQLite connection
        performance: Dict with 'mmap_size' and 'cache_size_kb'. None = config values.
    """
    perf = performance or PERFORMANCE
    for name, value in _FIXED_PRAGMAS:
        conn.execute(f"PRAGMA {name} = {value}")
    conn.execute(f"PRAGMA cache_size = -{int(perf['cache_size_kb'])}")
    conn.execute(f"PRAGMA mmap_size = {int(perf['mmap_size'])}")


def connect(db_path=DEFAULT_DB_PATH, row_factory=True):
    """Open a configured connection. The caller closes it."""
    conn = sqlite3.connect(db_path)
    try:
        apply_pragmas(conn)
    except sqlite3.Error:
        conn.close()
        raise
    if row_factory:
        conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_connection(db_path=DEFAULT_DB_PATH, row_factory=True):
    """Connection that is closed when the block exits. Commits are explicit."""
    conn = connect(db_path, row_factory=row_factory)
    try:
        yield conn
    finally:
        conn.close()
