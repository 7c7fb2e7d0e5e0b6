"""
Query composition against the tagged photo collection.

A photo matches when, for each person kind, every requested id appears among
its tags (containment), the kinds are ANDed, and the event name (if any) is
equal. Results are ordered newest first.
"""

from dataclasses import dataclass, field
from typing import FrozenSet

from db.schema import id_array_sql
from gallery.filters import FilterState, KIND_STUDENT, KIND_STAFF

ORDER_COLUMN = 'created_at'
ORDER_DIRECTION = 'DESC'

_JSON_COLUMNS = {KIND_STUDENT: 'student_ids', KIND_STAFF: 'staff_ids'}


@dataclass(frozen=True)
class PhotoQuery:
    """Declarative photo filter. Equal filter states give equal queries."""
    student_ids: FrozenSet[int] = field(default_factory=frozenset)
    staff_ids: FrozenSet[int] = field(default_factory=frozenset)
    event_name: str = ''
    order_by: str = ORDER_COLUMN
    order_direction: str = ORDER_DIRECTION

    def contains(self):
        """(kind, requested ids) pairs with a non-empty containment predicate."""
        return [(kind, ids) for kind, ids in ((KIND_STUDENT, self.student_ids),
                                              (KIND_STAFF, self.staff_ids)) if ids]

    def matches(self, record):
        """Evaluate the query against one PhotoRecord in memory."""
        # Each kind is checked on its own; merging them would accept a student
        # id that only appears among staff tags.
        if self.student_ids and not self.student_ids <= set(record.student_ids):
            return False
        if self.staff_ids and not self.staff_ids <= set(record.staff_ids):
            return False
        if self.event_name and record.event_name != self.event_name:
            return False
        return True

    def sort_key(self, record):
        return record.created_at

    def apply(self, records):
        """Filter and order an in-memory collection the way the store does."""
        matched = [r for r in records if self.matches(r)]
        # Stable sort: storage_path ascending breaks created_at ties
        matched.sort(key=lambda r: r.storage_path)
        matched.sort(key=self.sort_key, reverse=self.order_direction == 'DESC')
        return matched

    def to_sql(self, use_lookup=True):
        """Build (where_clauses, sql_params, order_by_clause) for the photos table.

        One EXISTS per requested id so every id must be present. Uses the
        photo_people lookup table when its sync triggers are installed, otherwise scans the
        JSON id columns with json_each.
        """
        where_clauses = []
        sql_params = []

        for kind, ids in self.contains():
            for person_id in sorted(ids):
                if use_lookup:
                    where_clauses.append(
                        "EXISTS (SELECT 1 FROM photo_people WHERE photo_path = photos.storage_path "
                        "AND kind = ? AND person_id = ?)"
                    )
                    sql_params.extend([kind, person_id])
                else:
                    column = _JSON_COLUMNS[kind]
                    where_clauses.append(
                        f"EXISTS (SELECT 1 FROM json_each({id_array_sql('photos.' + column)}) "
                        "WHERE type = 'integer' AND value = ?)"
                    )
                    sql_params.append(person_id)

        if self.event_name:
            where_clauses.append("event_name = ?")
            sql_params.append(self.event_name)

        direction = 'ASC' if self.order_direction == 'ASC' else 'DESC'
        order_by_clause = f"{self.order_by} {direction}, storage_path ASC"
        return where_clauses, sql_params, order_by_clause


def compose_query(state: FilterState) -> PhotoQuery:
    """Build the photo query for a filter state."""
    return PhotoQuery(
        student_ids=frozenset(state.student_ids),
        staff_ids=frozenset(state.staff_ids),
        event_name=state.event_name,
    )
