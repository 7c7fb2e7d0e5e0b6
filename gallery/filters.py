"""
Filter state parsing.

Navigation state carries comma-separated identifier lists (``studentId=101,102``).
Parsing is forgiving: tokens that are not integers are dropped, never raised.
Ids outside the range a database INTEGER can hold are dropped the same way.
"""

import re
from dataclasses import dataclass, field
from typing import FrozenSet, Mapping, Optional

from db.schema import SQLITE_MAX_INTEGER
from gallery.view_modes import ViewMode, classify_view

STUDENT_PARAM = 'studentId'
STAFF_PARAM = 'staffId'
EVENT_PARAM = 'event'
# Links shared before staff were renamed still carry rabbiId
LEGACY_STAFF_PARAMS = ('rabbiId',)

KIND_STUDENT = 'student'
KIND_STAFF = 'staff'
PERSON_KINDS = (KIND_STUDENT, KIND_STAFF)

MAX_MATCH_PEOPLE = 3
MIN_MATCH_PEOPLE = 2

# Sign, leading zeros, then at most 19 significant digits
_INT_TOKEN_RE = re.compile(r"([+-]?)0*([0-9]{1,19})")


def parse_id_list(raw: Optional[str]) -> FrozenSet[int]:
    """Parse a comma-separated id list into a set of non-negative integers."""
    if not raw:
        return frozenset()
    ids = set()
    for token in str(raw).split(','):
        token = token.strip()
        match = _INT_TOKEN_RE.fullmatch(token)
        if match is None:
            continue
        value = int(match.group(1) + match.group(2))
        if 0 <= value <= SQLITE_MAX_INTEGER:
            ids.add(value)
    return frozenset(ids)


def format_id_list(ids) -> str:
    """Inverse of parse_id_list, sorted for stable URLs."""
    return ','.join(str(i) for i in sorted(ids))


@dataclass(frozen=True)
class FilterState:
    """Immutable filter derived from navigation state.

    Equality is by value, so a FilterState doubles as the tag of the fetch
    generation it started.
    """
    student_ids: FrozenSet[int] = field(default_factory=frozenset)
    staff_ids: FrozenSet[int] = field(default_factory=frozenset)
    event_name: str = ''

    @classmethod
    def from_navigation(cls, nav: Mapping[str, Optional[str]]) -> 'FilterState':
        staff_raw = nav.get(STAFF_PARAM)
        if not staff_raw:
            for legacy in LEGACY_STAFF_PARAMS:
                if nav.get(legacy):
                    staff_raw = nav.get(legacy)
                    break
        return cls(
            student_ids=parse_id_list(nav.get(STUDENT_PARAM)),
            staff_ids=parse_id_list(staff_raw),
            event_name=(nav.get(EVENT_PARAM) or '').strip(),
        )

    @property
    def view_mode(self) -> ViewMode:
        return classify_view(self.student_ids, self.staff_ids, self.event_name)

    @property
    def is_empty(self):
        return not (self.student_ids or self.staff_ids or self.event_name)

    def to_navigation(self):
        """Navigation fields for this state; empty filters are omitted."""
        nav = {}
        if self.student_ids:
            nav[STUDENT_PARAM] = format_id_list(self.student_ids)
        if self.staff_ids:
            nav[STAFF_PARAM] = format_id_list(self.staff_ids)
        if self.event_name:
            nav[EVENT_PARAM] = self.event_name
        return nav

    @staticmethod
    def single_person_navigation(kind, person_id, nav=None):
        """Navigation after picking one person from a search box.

        Picking a student drops the staff filter and vice versa; the event
        filter is kept.
        """
        updated = dict(nav or {})
        for legacy in LEGACY_STAFF_PARAMS:
            updated.pop(legacy, None)
        if kind == KIND_STUDENT:
            updated[STUDENT_PARAM] = str(person_id)
            updated.pop(STAFF_PARAM, None)
        elif kind == KIND_STAFF:
            updated[STAFF_PARAM] = str(person_id)
            updated.pop(STUDENT_PARAM, None)
        else:
            raise ValueError(f"Unknown person kind: {kind}")
        return updated


class MatchSelection:
    """People picked for a "find together" search.

    Holds at most three people; picking the same person twice is ignored.
    """

    def __init__(self, max_people=MAX_MATCH_PEOPLE):
        self.max_people = max_people
        self._people = []

    @property
    def people(self):
        return list(self._people)

    def add(self, person_id, kind, name=''):
        """Add a person. Returns False when full or already selected."""
        if kind not in PERSON_KINDS:
            raise ValueError(f"Unknown person kind: {kind}")
        if len(self._people) >= self.max_people:
            return False
        if any(p['id'] == person_id and p['kind'] == kind for p in self._people):
            return False
        self._people.append({'id': person_id, 'kind': kind, 'name': name})
        return True

    def remove(self, person_id, kind):
        self._people = [p for p in self._people if not (p['id'] == person_id and p['kind'] == kind)]

    @property
    def can_search(self):
        return len(self._people) >= MIN_MATCH_PEOPLE

    def to_navigation(self):
        """Navigation fields selecting photos of everyone picked, together."""
        students = [str(p['id']) for p in self._people if p['kind'] == KIND_STUDENT]
        staff = [str(p['id']) for p in self._people if p['kind'] == KIND_STAFF]
        nav = {}
        if students:
            nav[STUDENT_PARAM] = ','.join(students)
        if staff:
            nav[STAFF_PARAM] = ','.join(staff)
        return nav
