"""
Gallery router: photo listing and view mode.

"""

import logging

from fastapi import APIRouter, Depends, Request

from api.config import GALLERY_CONFIG, get_page_size
from api.database import get_store
from api.models.gallery import GalleryResponse, ViewModeResponse
from gallery.filters import FilterState
from gallery.session import GallerySession, NavigationState
from gallery.sharing import download_filename, storage_url

logger = logging.getLogger(__name__)

router = APIRouter(tags=["gallery"])


def _filters_payload(state):
    return {
        'student_ids': sorted(state.student_ids),
        'staff_ids': sorted(state.staff_ids),
        'event_name': state.event_name,
    }


def _photo_card(record, session):
    labels = GALLERY_CONFIG['labels']
    return {
        'storage_path': record.storage_path,
        'url': storage_url(GALLERY_CONFIG['storage']['base_url'], record.storage_path),
        'event_name': record.event_name,
        'created_at': record.created_at,
        'tags': [chip.to_dict() for chip in session.tags_for(record)],
        'download_name': download_filename(
            record,
            staff_prefix=labels['staff_prefix'],
            max_people=GALLERY_CONFIG['download']['max_people'],
        ),
    }


def _navigation_from_request(request: Request):
    qp = request.query_params
    return NavigationState({key: qp.get(key) for key in qp.keys()})


@router.get("/api/photos", response_model=GalleryResponse)
async def api_photos(request: Request, store=Depends(get_store)):
    """Every photo matching the filter, newest first.

    The whole set is returned; the client reveals it page_size at a time.
    """
    labels = GALLERY_CONFIG['labels']
    session = GallerySession(
        store,
        navigation=_navigation_from_request(request),
        page_size=get_page_size(),
        with_names=True,
        person_fallback=labels['portfolio_fallback'],
        staff_fallback=labels['staff_fallback'],
        staff_prefix=labels['staff_prefix'],
    )
    await session.refresh()
    state = session.filter_state
    photos = [_photo_card(record, session) for record in session.window.all_matches]

    return {
        'mode': state.view_mode.value,
        'banner': await session.banner(),
        'filters': _filters_payload(state),
        'photos': photos,
        'total': len(photos),
        'page_size': session.window.page_size,
        'error': session.fetch_failed,
    }


@router.get("/api/view_mode", response_model=ViewModeResponse)
async def api_view_mode(request: Request):
    """Presentation mode for the filter, available before any fetch."""
    state = FilterState.from_navigation(_navigation_from_request(request))
    return {'mode': state.view_mode.value, 'filters': _filters_payload(state)}


@router.get("/api/config")
async def api_config():
    """Gallery configuration for client initialization."""
    return {
        'site_name': GALLERY_CONFIG['site_name'],
        'page_size': get_page_size(),
        'storage_base_url': GALLERY_CONFIG['storage']['base_url'],
        'search': GALLERY_CONFIG['search'],
        'labels': GALLERY_CONFIG['labels'],
        'match': GALLERY_CONFIG['match'],
    }
