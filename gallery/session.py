"""
Gallery session: navigation state in, revealed photos out.

Runs on one asyncio event loop. Navigation state is the only source of truth:
the filter and the view mode are re-derived from it on every access. Each
fetch is tagged with the FilterState it was issued for, and a response whose
tag no longer matches the current filter is dropped instead of merged.
"""

import logging

from gallery.filters import FilterState, KIND_STUDENT, KIND_STAFF
from gallery.paginator import ResultWindow, DEFAULT_PAGE_SIZE
from gallery.query import compose_query
from gallery.store import StoreError
from gallery.tags import photo_tags, STAFF_LABEL_PREFIX
from gallery.view_modes import (
    ViewMode, banner_text, DEFAULT_PERSON_FALLBACK, DEFAULT_STAFF_FALLBACK,
)

logger = logging.getLogger(__name__)


class NavigationState:
    """Holds the raw navigation fields (studentId, staffId, event)."""

    def __init__(self, fields=None):
        self._fields = {k: v for k, v in (fields or {}).items() if v is not None}

    def get(self, key, default=None):
        return self._fields.get(key, default)

    def replace(self, fields):
        self._fields = {k: v for k, v in (fields or {}).items() if v is not None}

    def update(self, **fields):
        for key, value in fields.items():
            if value is None:
                self._fields.pop(key, None)
            else:
                self._fields[key] = value

    def as_dict(self):
        return dict(self._fields)


class GallerySession:
    """Filter, fetch and reveal photos for one viewer."""

    def __init__(self, store, navigation=None, page_size=DEFAULT_PAGE_SIZE,
                 with_names=False, person_fallback=DEFAULT_PERSON_FALLBACK,
                 staff_fallback=DEFAULT_STAFF_FALLBACK, staff_prefix=STAFF_LABEL_PREFIX):
        self.store = store
        self.navigation = navigation if navigation is not None else NavigationState()
        self.window = ResultWindow(page_size=page_size)
        self.with_names = with_names
        self.person_fallback = person_fallback
        self.staff_fallback = staff_fallback
        self.staff_prefix = staff_prefix
        self.fetch_failed = False
        self._pending = None

    # --- derived state ---

    @property
    def filter_state(self):
        return FilterState.from_navigation(self.navigation)

    @property
    def view_mode(self):
        return self.filter_state.view_mode

    @property
    def loading(self):
        return self.window.loading

    @property
    def visible(self):
        return self.window.visible

    def tags_for(self, record):
        return photo_tags(record, self.filter_state, staff_prefix=self.staff_prefix)

    # --- fetching ---

    async def refresh(self):
        """Fetch the full result set for the current filter.

        Returns True when the response was installed, False when it arrived
        for a superseded filter and was dropped.
        """
        state = self.filter_state
        self._pending = state
        self.window.begin_loading()

        failed = False
        try:
            records = await self.store.fetch_photos(compose_query(state), with_names=self.with_names)
        except StoreError as e:
            logger.warning("Photo query failed for %s: %s", state, e)
            records = []
            failed = True

        if state != self._pending or state != self.filter_state:
            logger.debug("Dropping stale response for %s", state)
            return False

        self._pending = None
        self.fetch_failed = failed
        self.window.replace(records)
        return True

    def on_proximity(self):
        """Viewport reached the end of the visible region. Never fetches."""
        if self.window.loading:
            return False
        return self.window.advance()

    # --- navigation ---

    async def navigate(self, fields):
        """Replace navigation state and refetch."""
        self.navigation.replace(fields)
        return await self.refresh()

    async def clear_filters(self):
        return await self.navigate({})

    async def select_person(self, kind, person_id):
        """Single-person search: picking a student drops the staff filter and vice versa."""
        fields = FilterState.single_person_navigation(kind, person_id, self.navigation.as_dict())
        return await self.navigate(fields)

    async def select_event(self, event_name):
        fields = self.navigation.as_dict()
        fields['event'] = event_name or None
        return await self.navigate(fields)

    async def apply_match(self, selection):
        """Navigate to photos of everyone in a MatchSelection together."""
        if not selection.can_search:
            return False
        return await self.navigate(selection.to_navigation())

    # --- presentation helpers ---

    async def _lookup_name(self, kind, person_id):
        try:
            return await self.store.get_person_name(kind, person_id)
        except StoreError as e:
            logger.warning("Name lookup failed for %s %s: %s", kind, person_id, e)
            return None

    async def banner(self):
        """Heading text; name lookups that fail fall back to placeholders."""
        state = self.filter_state
        mode = state.view_mode
        student_name = staff_name = None
        if mode in (ViewMode.PORTFOLIO, ViewMode.MATCH):
            student_name = await self._lookup_name(KIND_STUDENT, next(iter(state.student_ids)))
        if mode == ViewMode.MATCH:
            staff_name = await self._lookup_name(KIND_STAFF, next(iter(state.staff_ids)))
        return banner_text(mode, student_name, staff_name, state.event_name,
                           person_fallback=self.person_fallback,
                           staff_fallback=self.staff_fallback)

    async def event_options(self):
        """Event names for the event filter control; skipped in Portfolio mode."""
        if self.view_mode == ViewMode.PORTFOLIO:
            return []
        try:
            return await self.store.list_events()
        except StoreError as e:
            logger.warning("Event listing failed: %s", e)
            return []
