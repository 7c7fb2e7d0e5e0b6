"""
Photo store collaborators.

The engine talks to the collection through ``PhotoStore``: a full-set query,
a name lookup, an event listing and a name search. ``SqlitePhotoStore`` is the
SQLite-backed implementation; blocking sqlite3 calls run in the default
executor so the event loop never blocks.
"""

import asyncio
import logging
import sqlite3
from abc import ABC, abstractmethod
from functools import partial

from db import DEFAULT_DB_PATH, PHOTO_PEOPLE_TRIGGERS, SQLITE_MAX_INTEGER, connect
from gallery.filters import KIND_STUDENT, KIND_STAFF
from gallery.models import PhotoRecord

logger = logging.getLogger(__name__)

PEOPLE_TABLES = {KIND_STUDENT: 'students', KIND_STAFF: 'staff'}

# OverflowError: an int outside the INTEGER range bound as a parameter
_QUERY_ERRORS = (sqlite3.Error, OverflowError)


class StoreError(Exception):
    """The photo store could not answer a query."""


async def run_sync(fn, *args, **kwargs):
    """Run a synchronous function in the default executor."""
    loop = asyncio.get_running_loop()
    if kwargs:
        return await loop.run_in_executor(None, partial(fn, *args, **kwargs))
    return await loop.run_in_executor(None, partial(fn, *args))


class PhotoStore(ABC):
    """Interface the gallery engine consumes."""

    @abstractmethod
    async def fetch_photos(self, query, with_names=False):
        """Return every record matching ``query``, in the query's order.

        Raises StoreError on failure. No pagination parameters: always the
        full matching set.
        """

    @abstractmethod
    async def get_photo(self, storage_path, with_names=False):
        """One record by storage path, or None."""

    @abstractmethod
    async def get_person_name(self, kind, person_id):
        """Display name for one person, or None when unknown."""

    @abstractmethod
    async def list_events(self):
        """Distinct event names, sorted."""

    @abstractmethod
    async def search_people(self, kind, text, limit=5):
        """[(id, name)] whose name contains ``text`` (case-insensitive)."""


def _people_table(kind):
    try:
        return PEOPLE_TABLES[kind]
    except KeyError:
        raise ValueError(f"Unknown person kind: {kind}") from None


class SqlitePhotoStore(PhotoStore):
    """PhotoStore over the gallery SQLite database."""

    def __init__(self, db_path=DEFAULT_DB_PATH):
        self.db_path = db_path
        self._lookup_available = None

    def _connect(self):
        try:
            return connect(self.db_path)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open {self.db_path}: {e}") from e

    def is_lookup_available(self, conn=None):
        """Check whether photo_people is kept in sync with photos.

        The lookup is trusted only once its sync triggers are installed
        (init_database or rebuild_people_lookup); before that, containment
        falls back to json_each over the id columns.
        """
        if self._lookup_available is not None:
            return self._lookup_available

        close_conn = False
        if conn is None:
            conn = self._connect()
            close_conn = True
        try:
            names = [name for name, _, _ in PHOTO_PEOPLE_TRIGGERS]
            placeholders = ','.join(['?'] * len(names))
            count = conn.execute(
                "SELECT COUNT(*) FROM sqlite_master "
                f"WHERE type = 'trigger' AND name IN ({placeholders})",
                names
            ).fetchone()[0]
            self._lookup_available = count == len(names)
        except sqlite3.Error:
            self._lookup_available = False
        finally:
            if close_conn:
                conn.close()
        return self._lookup_available

    def _names_by_id(self, conn, kind, ids):
        if not ids:
            return {}
        table = _people_table(kind)
        id_list = sorted(ids)
        placeholders = ','.join(['?'] * len(id_list))
        rows = conn.execute(
            f"SELECT id, name FROM {table} WHERE id IN ({placeholders})", id_list
        ).fetchall()
        return {row['id']: row['name'] for row in rows}

    def fetch_photos_sync(self, query, with_names=False):
        # No stored tag can exceed the INTEGER range, so such a request matches nothing
        if any(not 0 <= person_id <= SQLITE_MAX_INTEGER
               for _, ids in query.contains() for person_id in ids):
            return []
        conn = self._connect()
        try:
            where_clauses, sql_params, order_by = query.to_sql(
                use_lookup=self.is_lookup_available(conn))
            where_str = f" WHERE {' AND '.join(where_clauses)}" if where_clauses else ""
            rows = conn.execute(
                "SELECT storage_path, event_name, student_ids, staff_ids, created_at "
                f"FROM photos{where_str} ORDER BY {order_by}",
                sql_params
            ).fetchall()
            return self._to_records(conn, rows, with_names)
        except _QUERY_ERRORS as e:
            raise StoreError(str(e)) from e
        finally:
            conn.close()

    def _to_records(self, conn, rows, with_names):
        records = [PhotoRecord.from_row(row) for row in rows]
        if not with_names:
            return records

        student_names = self._names_by_id(
            conn, KIND_STUDENT, {i for r in records for i in r.student_ids})
        staff_names = self._names_by_id(
            conn, KIND_STAFF, {i for r in records for i in r.staff_ids})
        return [
            PhotoRecord.from_row(
                row,
                student_names=[student_names.get(i, '') for i in record.student_ids],
                staff_names=[staff_names.get(i, '') for i in record.staff_ids],
            )
            for row, record in zip(rows, records)
        ]

    def get_photo_sync(self, storage_path, with_names=False):
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT storage_path, event_name, student_ids, staff_ids, created_at "
                "FROM photos WHERE storage_path = ?",
                (storage_path,)
            ).fetchall()
            records = self._to_records(conn, rows, with_names)
        except _QUERY_ERRORS as e:
            raise StoreError(str(e)) from e
        finally:
            conn.close()
        return records[0] if records else None

    def get_person_name_sync(self, kind, person_id):
        table = _people_table(kind)
        if not -SQLITE_MAX_INTEGER - 1 <= person_id <= SQLITE_MAX_INTEGER:
            return None
        conn = self._connect()
        try:
            row = conn.execute(f"SELECT name FROM {table} WHERE id = ?", (person_id,)).fetchone()
        except _QUERY_ERRORS as e:
            raise StoreError(str(e)) from e
        finally:
            conn.close()
        return row['name'] if row and row['name'] else None

    def list_events_sync(self):
        conn = self._connect()
        try:
            rows = conn.execute("""
                SELECT DISTINCT event_name FROM photos
                WHERE event_name IS NOT NULL AND event_name != ''
                ORDER BY event_name
            """).fetchall()
        except _QUERY_ERRORS as e:
            raise StoreError(str(e)) from e
        finally:
            conn.close()
        return [r[0] for r in rows]

    def search_people_sync(self, kind, text, limit=5):
        table = _people_table(kind)
        # LIKE is case-insensitive for ASCII in SQLite
        escaped = text.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
        conn = self._connect()
        try:
            rows = conn.execute(
                f"SELECT id, name FROM {table} WHERE name LIKE ? ESCAPE '\\' ORDER BY name LIMIT ?",
                (f"%{escaped}%", limit)
            ).fetchall()
        except _QUERY_ERRORS as e:
            raise StoreError(str(e)) from e
        finally:
            conn.close()
        return [(r['id'], r['name']) for r in rows]

    async def fetch_photos(self, query, with_names=False):
        return await run_sync(self.fetch_photos_sync, query, with_names=with_names)

    async def get_photo(self, storage_path, with_names=False):
        return await run_sync(self.get_photo_sync, storage_path, with_names=with_names)

    async def get_person_name(self, kind, person_id):
        return await run_sync(self.get_person_name_sync, kind, person_id)

    async def list_events(self):
        return await run_sync(self.list_events_sync)

    async def search_people(self, kind, text, limit=5):
        return await run_sync(self.search_people_sync, kind, text, limit)
