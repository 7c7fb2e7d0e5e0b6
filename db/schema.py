"""
Database schema definitions and initialization for the gallery.

Single source of truth for all table and index definitions.
"""

import logging
import sqlite3

from db.connection import get_connection

logger = logging.getLogger(__name__)

# Schema definitions as (name, type_definition) tuples
# Type definition includes any defaults or constraints

PHOTOS_COLUMNS = [
    ('storage_path', "TEXT PRIMARY KEY CHECK (storage_path != '')"),
    ('event_name', "TEXT NOT NULL DEFAULT ''"),
    # JSON arrays in tagging order, duplicates allowed
    ('student_ids', "TEXT NOT NULL DEFAULT '[]'"),
    ('staff_ids', "TEXT NOT NULL DEFAULT '[]'"),
    ('created_at', "TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now'))"),
]

STUDENTS_COLUMNS = [
    ('id', 'INTEGER PRIMARY KEY'),
    ('name', 'TEXT NOT NULL'),
]

STAFF_COLUMNS = [
    ('id', 'INTEGER PRIMARY KEY'),
    ('name', 'TEXT NOT NULL'),
]

PHOTO_PEOPLE_COLUMNS = [
    ('photo_path', 'TEXT NOT NULL'),
    ('kind', "TEXT NOT NULL CHECK (kind IN ('student', 'staff'))"),
    ('person_id', 'INTEGER NOT NULL'),
]

INDEXES = [
    ('idx_photos_created_at', 'photos', 'created_at DESC'),
    ('idx_photos_event_name', 'photos', 'event_name'),
    ('idx_students_name', 'students', 'name'),
    ('idx_staff_name', 'staff', 'name'),
]

PHOTO_PEOPLE_INDEXES = [
    ('idx_photo_people_person', 'photo_people', 'kind, person_id'),
    ('idx_photo_people_path', 'photo_people', 'photo_path'),
]

# Largest value an SQLite INTEGER column can hold
SQLITE_MAX_INTEGER = 2 ** 63 - 1

# (kind, photos column) pairs feeding the photo_people lookup
PHOTO_PEOPLE_SOURCES = (('student', 'student_ids'), ('staff', 'staff_ids'))


def id_array_sql(expr):
    """``expr`` when it holds a JSON array, otherwise an empty array."""
    return (f"CASE WHEN json_valid({expr}) THEN "
            f"CASE WHEN json_type({expr}) = 'array' THEN {expr} ELSE '[]' END "
            f"ELSE '[]' END")


def _insert_people_sql(row):
    statements = []
    for kind, column in PHOTO_PEOPLE_SOURCES:
        statements.append(
            "INSERT OR IGNORE INTO photo_people (photo_path, kind, person_id) "
            f"SELECT {row}.storage_path, '{kind}', value "
            f"FROM json_each({id_array_sql(f'{row}.{column}')}) WHERE type = 'integer';"
        )
    return ' '.join(statements)


# Triggers keeping photo_people in step with every write to photos
PHOTO_PEOPLE_TRIGGERS = [
    ('trg_photos_people_insert', 'AFTER INSERT ON photos', _insert_people_sql('NEW')),
    ('trg_photos_people_update', 'AFTER UPDATE OF storage_path, student_ids, staff_ids ON photos',
     'DELETE FROM photo_people WHERE photo_path = OLD.storage_path; ' + _insert_people_sql('NEW')),
    ('trg_photos_people_delete', 'AFTER DELETE ON photos',
     'DELETE FROM photo_people WHERE photo_path = OLD.storage_path;'),
]


def _build_create_table_sql(table_name, columns, constraints=None):
    """Build CREATE TABLE IF NOT EXISTS SQL from column definitions."""
    col_defs = [f'{name} {typedef}' for name, typedef in columns]
    if constraints:
        col_defs.extend(constraints)
    cols_sql = ',\n                    '.join(col_defs)
    return f'''CREATE TABLE IF NOT EXISTS {table_name} (
                    {cols_sql}
                )'''


def _migrate_add_missing_columns(conn, table_name, columns):
    """Add any missing columns to an existing table.

    Args:
        conn: SQLite connection
        table_name: Name of the table to migrate
        columns: List of (name, type_definition) tuples defining expected columns
    """
    cursor = conn.execute(f"PRAGMA table_info({table_name})")
    existing_cols = {row[1] for row in cursor.fetchall()}

    for col_name, col_type in columns:
        if col_name not in existing_cols:
            # ALTER TABLE takes the base type only; constraints and defaults are dropped
            base_type = col_type.split()[0] if col_type else 'TEXT'
            try:
                conn.execute(f"ALTER TABLE {table_name} ADD COLUMN {col_name} {base_type}")
                logger.info("Added column: %s.%s", table_name, col_name)
            except sqlite3.OperationalError as e:
                if 'duplicate column name' not in str(e).lower():
                    logger.warning("Could not add %s.%s: %s", table_name, col_name, e)


def create_people_lookup_table(conn):
    conn.execute(_build_create_table_sql(
        'photo_people',
        PHOTO_PEOPLE_COLUMNS,
        constraints=['PRIMARY KEY (photo_path, kind, person_id)']
    ))
    for idx_name, table, column_expr in PHOTO_PEOPLE_INDEXES:
        conn.execute(f'CREATE INDEX IF NOT EXISTS {idx_name} ON {table}({column_expr})')


def create_people_triggers(conn):
    """Install any missing photo_people sync triggers.

    Returns:
        True when at least one trigger was created
    """
    existing = {row[0] for row in conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'trigger'")}
    created = False
    for name, timing, body in PHOTO_PEOPLE_TRIGGERS:
        if name in existing:
            continue
        conn.execute(f"CREATE TRIGGER {name} {timing} FOR EACH ROW BEGIN {body} END")
        logger.info("Created trigger: %s", name)
        created = True
    return created


def backfill_people_lookup(conn):
    """Replace photo_people with rows derived from the current photos table."""
    conn.execute("DELETE FROM photo_people")
    for kind, column in PHOTO_PEOPLE_SOURCES:
        conn.execute(
            "INSERT OR IGNORE INTO photo_people (photo_path, kind, person_id) "
            f"SELECT photos.storage_path, '{kind}', j.value "
            f"FROM photos, json_each({id_array_sql(f'photos.{column}')}) AS j "
            "WHERE j.type = 'integer'"
        )


def init_database(db_path):
    """Create all tables, indexes and triggers. Safe to run against an existing database.

    A database that predates the sync triggers gets its lookup table rebuilt
    once, when the triggers are first installed.
    """
    with get_connection(db_path, row_factory=False) as conn:
        conn.execute(_build_create_table_sql('photos', PHOTOS_COLUMNS))
        _migrate_add_missing_columns(conn, 'photos', PHOTOS_COLUMNS)

        conn.execute(_build_create_table_sql('students', STUDENTS_COLUMNS))
        conn.execute(_build_create_table_sql('staff', STAFF_COLUMNS))

        # Lookup table for fast containment queries
        create_people_lookup_table(conn)

        for idx_name, table, column_expr in INDEXES:
            conn.execute(
                f'CREATE INDEX IF NOT EXISTS {idx_name} ON {table}({column_expr})'
            )

        if create_people_triggers(conn):
            backfill_people_lookup(conn)

        conn.commit()
