"""
Gallery database package.

Re-exports public API for short imports.
"""

from db.connection import get_connection, connect, apply_pragmas, DEFAULT_DB_PATH
from db.schema import (
    init_database, create_people_lookup_table, create_people_triggers, backfill_people_lookup,
    PHOTOS_COLUMNS, STUDENTS_COLUMNS, STAFF_COLUMNS,
    PHOTO_PEOPLE_COLUMNS, PHOTO_PEOPLE_INDEXES, PHOTO_PEOPLE_TRIGGERS, INDEXES,
    SQLITE_MAX_INTEGER,
    _build_create_table_sql, _migrate_add_missing_columns,
)
from db.people import rebuild_people_lookup, get_photo_people_count
