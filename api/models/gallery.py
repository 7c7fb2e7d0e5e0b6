"""Pydantic models for gallery endpoints."""

from pydantic import BaseModel, Field
from typing import Optional

from db import SQLITE_MAX_INTEGER


class TagChipModel(BaseModel):
    kind: str
    label: str
    id: Optional[int] = None
    selected: bool = False


class PhotoCard(BaseModel):
    storage_path: str
    url: str
    event_name: str = ''
    created_at: str = ''
    tags: list[TagChipModel] = []
    download_name: str


class Filters(BaseModel):
    student_ids: list[int] = []
    staff_ids: list[int] = []
    event_name: str = ''


class GalleryResponse(BaseModel):
    mode: str
    banner: str
    filters: Filters
    photos: list[PhotoCard]
    total: int
    page_size: int
    error: bool = False


class ViewModeResponse(BaseModel):
    mode: str
    filters: Filters


class PersonResult(BaseModel):
    id: int
    name: str


class PersonSearchResponse(BaseModel):
    results: list[PersonResult]


class EventsResponse(BaseModel):
    events: list[str]
    cached: bool = False


class MatchPerson(BaseModel):
    id: int = Field(ge=0, le=SQLITE_MAX_INTEGER)
    kind: str
    name: str = ''


class MatchRequest(BaseModel):
    people: list[MatchPerson]


class MatchResponse(BaseModel):
    navigation: dict[str, str]
    mode: str


class ShareResponse(BaseModel):
    url: str
    share_url: str
    download_name: str
