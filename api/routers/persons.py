"""
Persons router: name search, name lookup and "find together" selections.

"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from api.config import GALLERY_CONFIG
from api.database import get_store
from api.models.gallery import (
    MatchRequest, MatchResponse, PersonResult, PersonSearchResponse,
)
from gallery.filters import FilterState, MatchSelection, PERSON_KINDS
from gallery.store import StoreError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/persons", tags=["persons"])

# Accept the table names used by the search boxes as well as the kinds
_KIND_ALIASES = {'students': 'student', 'staff': 'staff', 'rabbis': 'staff'}


def _normalize_kind(kind: str) -> str:
    kind = _KIND_ALIASES.get(kind, kind)
    if kind not in PERSON_KINDS:
        raise HTTPException(status_code=400, detail=f"Unknown person kind: {kind}")
    return kind


@router.get("/search", response_model=PersonSearchResponse)
async def search_persons(
    kind: str = Query(...),
    q: str = Query(''),
    store=Depends(get_store),
):
    """Autocomplete: names containing ``q``, case-insensitive."""
    kind = _normalize_kind(kind)
    search_cfg = GALLERY_CONFIG['search']
    text = q.strip()
    if len(text) < search_cfg['min_query_length']:
        return {'results': []}
    try:
        rows = await store.search_people(kind, text, limit=search_cfg['max_results'])
    except StoreError as e:
        logger.warning("Person search failed for %r: %s", text, e)
        rows = []
    return {'results': [{'id': pid, 'name': name} for pid, name in rows]}


@router.get("/{kind}/{person_id}", response_model=PersonResult)
async def get_person(kind: str, person_id: int, store=Depends(get_store)):
    """Display name for one person."""
    kind = _normalize_kind(kind)
    try:
        name = await store.get_person_name(kind, person_id)
    except StoreError as e:
        logger.warning("Name lookup failed for %s %s: %s", kind, person_id, e)
        name = None
    if name is None:
        raise HTTPException(status_code=404, detail="Person not found")
    return {'id': person_id, 'name': name}


@router.post("/match", response_model=MatchResponse)
async def build_match(body: MatchRequest):
    """Navigation for photos of the selected people together (2 to 3 people)."""
    selection = MatchSelection(max_people=GALLERY_CONFIG['match']['max_people'])
    for person in body.people:
        selection.add(person.id, _normalize_kind(person.kind), person.name)
    if not selection.can_search:
        raise HTTPException(status_code=400, detail="Select at least two different people")
    navigation = selection.to_navigation()
    mode = FilterState.from_navigation(navigation).view_mode
    return {'navigation': navigation, 'mode': mode.value}
