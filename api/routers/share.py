"""
Share router: share links and download names for one photo.

"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from api.config import GALLERY_CONFIG
from api.database import get_store
from api.models.gallery import ShareResponse
from gallery.sharing import download_filename, share_link, storage_url
from gallery.store import StoreError

router = APIRouter(tags=["share"])


@router.get("/api/share", response_model=ShareResponse)
async def api_share(
    request: Request,
    path: str = Query(...),
    user_agent: Optional[str] = Query(None),
    store=Depends(get_store),
):
    """WhatsApp share link and download name for a photo."""
    try:
        record = await store.get_photo(path, with_names=True)
    except StoreError:
        record = None
    if record is None:
        raise HTTPException(status_code=404, detail="Photo not found")

    base_url = GALLERY_CONFIG['storage']['base_url']
    url = storage_url(base_url, record.storage_path)
    ua = user_agent if user_agent is not None else request.headers.get('user-agent', '')
    labels = GALLERY_CONFIG['labels']
    return {
        'url': url,
        'share_url': share_link(
            url, record.event_name, GALLERY_CONFIG['site_name'], base_url,
            user_agent=ua, message_template=GALLERY_CONFIG['share']['message'],
        ),
        'download_name': download_filename(
            record, staff_prefix=labels['staff_prefix'],
            max_people=GALLERY_CONFIG['download']['max_people'],
        ),
    }
