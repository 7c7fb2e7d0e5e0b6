"""
Filter options router: lazy-loaded dropdown options.

"""

import logging
import time

from fastapi import APIRouter, Depends

from api.config import GALLERY_CONFIG, _events_cache
from api.database import get_store
from api.models.gallery import EventsResponse
from gallery.store import StoreError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/filter_options", tags=["filter_options"])


@router.get("/events", response_model=EventsResponse)
async def events(store=Depends(get_store)):
    """Distinct event names for the event filter control."""
    if _events_cache['data'] is not None and time.time() < _events_cache['expires']:
        return {'events': _events_cache['data'], 'cached': True}

    try:
        data = await store.list_events()
    except StoreError as e:
        logger.warning("Event listing failed: %s", e)
        return {'events': [], 'cached': False}

    _events_cache['data'] = data
    _events_cache['expires'] = time.time() + GALLERY_CONFIG['cache_ttl_seconds']
    return {'events': data, 'cached': False}
