"""
Tag chips for photo cards.

Upstream tagging does not enforce uniqueness, so a photo can list the same
person twice. Chips are generated once per unique person, first occurrence
first.
"""

from dataclasses import dataclass
from typing import Optional

from gallery.filters import KIND_STUDENT, KIND_STAFF

STAFF_LABEL_PREFIX = 'R'


def dedupe(values):
    """Drop repeated values, keeping first-occurrence order."""
    seen = set()
    unique = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        unique.append(value)
    return unique


@dataclass(frozen=True)
class TagChip:
    kind: str
    label: str
    person_id: Optional[int] = None
    selected: bool = False

    def to_dict(self):
        return {
            'kind': self.kind,
            'label': self.label,
            'id': self.person_id,
            'selected': self.selected,
        }


def _id_label(kind, person_id, staff_prefix):
    if kind == KIND_STAFF:
        return f"#{staff_prefix}{person_id}"
    return f"#{person_id}"


def _chips_for_kind(kind, ids, names, selected_ids, staff_prefix):
    if names is None:
        return [
            TagChip(kind=kind, label=_id_label(kind, pid, staff_prefix), person_id=pid,
                    selected=pid in selected_ids)
            for pid in dedupe(ids)
        ]

    # Names are aligned by position with ids; ids may be missing on the
    # simplified record shape, so names are the dedupe key here.
    chips = []
    seen = set()
    for position, name in enumerate(names):
        pid = ids[position] if position < len(ids) else None
        if not name:
            if pid is None:
                continue
            name = _id_label(kind, pid, staff_prefix)
        if name in seen:
            continue
        seen.add(name)
        chips.append(TagChip(kind=kind, label=name, person_id=pid,
                             selected=pid is not None and pid in selected_ids))
    return chips


def photo_tags(record, state=None, staff_prefix=STAFF_LABEL_PREFIX):
    """Student chips then staff chips for one PhotoRecord.

    Chips for people named in the current filter are marked selected.
    """
    student_selected = state.student_ids if state is not None else frozenset()
    staff_selected = state.staff_ids if state is not None else frozenset()
    return (
        _chips_for_kind(KIND_STUDENT, record.student_ids, record.student_names,
                        student_selected, staff_prefix)
        + _chips_for_kind(KIND_STAFF, record.staff_ids, record.staff_names,
                          staff_selected, staff_prefix)
    )
