"""
Record types shared by the gallery engine.

"""

import json
from dataclasses import dataclass
from typing import Optional, Tuple

from db.schema import SQLITE_MAX_INTEGER


def _json_ids(raw):
    """Decode a JSON id column into a tuple, keeping order and duplicates."""
    if raw is None or raw == '':
        return ()
    if isinstance(raw, (list, tuple)):
        values = raw
    else:
        try:
            values = json.loads(raw)
        except (TypeError, ValueError):
            return ()
    if not isinstance(values, (list, tuple)):
        return ()
    return tuple(v for v in values if isinstance(v, int) and not isinstance(v, bool)
                 and -SQLITE_MAX_INTEGER - 1 <= v <= SQLITE_MAX_INTEGER)


@dataclass(frozen=True)
class PhotoRecord:
    """One row of the photo collection. Read-only snapshot of a single fetch."""
    storage_path: str
    event_name: str = ''
    student_ids: Tuple[int, ...] = ()
    staff_ids: Tuple[int, ...] = ()
    student_names: Optional[Tuple[str, ...]] = None
    staff_names: Optional[Tuple[str, ...]] = None
    created_at: str = ''

    def __post_init__(self):
        if not self.storage_path:
            raise ValueError("storage_path must not be empty")

    @classmethod
    def from_row(cls, row, student_names=None, staff_names=None):
        """Build a record from a photos row (sqlite3.Row or dict)."""
        row = dict(row)
        return cls(
            storage_path=row['storage_path'],
            event_name=row.get('event_name') or '',
            student_ids=_json_ids(row.get('student_ids')),
            staff_ids=_json_ids(row.get('staff_ids')),
            student_names=tuple(student_names) if student_names is not None else None,
            staff_names=tuple(staff_names) if staff_names is not None else None,
            created_at=row.get('created_at') or '',
        )

    @property
    def has_names(self):
        return self.student_names is not None or self.staff_names is not None
