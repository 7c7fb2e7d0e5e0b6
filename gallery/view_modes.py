"""
Presentation mode classification.

The mode is always derived from the current filter, never stored, so it can
be known before any fetch completes.
"""

from enum import Enum

DEFAULT_PERSON_FALLBACK = 'Your Son'
DEFAULT_STAFF_FALLBACK = 'Staff Member'
GENERIC_TITLE = 'All Photos'


class ViewMode(str, Enum):
    GENERIC = 'generic'
    PORTFOLIO = 'portfolio'
    MATCH = 'match'


def classify_view(student_ids, staff_ids, event_name=''):
    """Classify a filter into a presentation mode.

    Portfolio: exactly one student, no staff, no event.
    Match: exactly one student and exactly one staff member; the event filter
    only changes the banner, so it does not affect the mode.
    """
    if len(student_ids) == 1 and len(staff_ids) == 1:
        return ViewMode.MATCH
    if len(student_ids) == 1 and not staff_ids and not event_name:
        return ViewMode.PORTFOLIO
    return ViewMode.GENERIC


def banner_text(mode, student_name=None, staff_name=None, event_name='',
                person_fallback=DEFAULT_PERSON_FALLBACK,
                staff_fallback=DEFAULT_STAFF_FALLBACK):
    """Heading for the gallery. Missing names fall back to placeholders."""
    student = student_name or person_fallback
    staff = staff_name or staff_fallback
    if mode == ViewMode.PORTFOLIO:
        return f"{student}'s Portfolio"
    if mode == ViewMode.MATCH:
        title = f"{student} with {staff}"
        if event_name:
            title = f"{title} at {event_name}"
        return title
    return event_name or GENERIC_TITLE
