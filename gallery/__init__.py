"""
Gallery engine: filter parsing, view classification, query composition,
reveal window and tag chips for a tagged photo collection.
"""

from gallery.filters import (
    FilterState, MatchSelection, parse_id_list, format_id_list,
    KIND_STUDENT, KIND_STAFF, PERSON_KINDS,
)
from gallery.models import PhotoRecord
from gallery.paginator import ResultWindow, DEFAULT_PAGE_SIZE
from gallery.query import PhotoQuery, compose_query
from gallery.session import GallerySession, NavigationState
from gallery.store import PhotoStore, SqlitePhotoStore, StoreError
from gallery.tags import TagChip, dedupe, photo_tags
from gallery.view_modes import ViewMode, classify_view, banner_text
