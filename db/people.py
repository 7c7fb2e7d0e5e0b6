"""
People lookup maintenance.

Populates the photo_people lookup table from the JSON id columns of photos.
"""

import json
import logging
import sqlite3

from tqdm import tqdm

from db.connection import get_connection, DEFAULT_DB_PATH
from db.schema import (
    create_people_lookup_table, create_people_triggers, SQLITE_MAX_INTEGER,
)

logger = logging.getLogger(__name__)


def _decode_ids(raw):
    """Decode a JSON id array, skipping anything that is not an integer."""
    if not raw:
        return []
    try:
        values = json.loads(raw)
    except (TypeError, ValueError):
        return []
    if not isinstance(values, list):
        return []
    return [v for v in values if isinstance(v, int) and not isinstance(v, bool)
            and -SQLITE_MAX_INTEGER - 1 <= v <= SQLITE_MAX_INTEGER]


def rebuild_people_lookup(db_path=DEFAULT_DB_PATH, batch_size=10000, show_progress=False):
    """
    Populate the photo_people lookup table from the photos id columns.

    Existing lookup rows are cleared first, so tags removed from a photo do not
    survive a rebuild. Duplicate ids in the source arrays collapse to one row
    each. Also installs the triggers that keep the table current afterwards.

    Args:
        db_path: Path to the SQLite database file
        batch_size: Number of lookup rows per insert batch
        show_progress: Show a tqdm progress bar over the photos

    Returns:
        Tuple of (total_rows_inserted, total_photos_processed)
    """
    with get_connection(db_path, row_factory=False) as conn:
        create_people_lookup_table(conn)
        create_people_triggers(conn)
        conn.execute("DELETE FROM photo_people")

        total_rows = 0
        processed = 0
        batch = []

        rows = conn.execute("SELECT storage_path, student_ids, staff_ids FROM photos").fetchall()
        for path, student_ids, staff_ids in tqdm(rows, desc="Rebuilding people lookup",
                                                  disable=not show_progress):
            for kind, raw in (('student', student_ids), ('staff', staff_ids)):
                for person_id in set(_decode_ids(raw)):
                    batch.append((path, kind, person_id))
            processed += 1

            if len(batch) >= batch_size:
                conn.executemany(
                    "INSERT OR IGNORE INTO photo_people (photo_path, kind, person_id) VALUES (?, ?, ?)",
                    batch
                )
                conn.commit()
                total_rows += len(batch)
                batch = []
                logger.info("Processed %d photos (%d lookup rows)", processed, total_rows)

        if batch:
            conn.executemany(
                "INSERT OR IGNORE INTO photo_people (photo_path, kind, person_id) VALUES (?, ?, ?)",
                batch
            )
            conn.commit()
            total_rows += len(batch)

    logger.info("People lookup rebuilt: %d rows from %d photos", total_rows, processed)
    return total_rows, processed


def get_photo_people_count(db_path=DEFAULT_DB_PATH):
    """Return the number of entries in the photo_people lookup table."""
    with get_connection(db_path, row_factory=False) as conn:
        try:
            count = conn.execute("SELECT COUNT(*) FROM photo_people").fetchone()[0]
        except sqlite3.OperationalError:
            count = 0
        return count
