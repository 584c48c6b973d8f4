from pydantic import BaseModel, Field
from typing import List, Optional
from enum import Enum

from schemas.note_schema import Author, NoteInfo
from schemas.photo_schema import PhotoInfo

class PlaceStatus(str, Enum):
    """Where a place sits in the couple's journal."""
    PLANNED = "planned"
    BEEN_THERE = "been_there"
    FAVORITE = "favorite"
    DREAM = "dream"

class Review(BaseModel):
    """A single review captured from the places provider."""
    text: str = ""
    rating: Optional[float] = None
    author_name: Optional[str] = Field(None, alias="authorName")

    class Config:
        populate_by_name = True

class TagInfo(BaseModel):
    """Schema for returning a tag. Tags are seeded outside the app."""
    id: str
    name: str
    color: Optional[str] = None
    created_at: Optional[str] = None

class PlaceBase(BaseModel):
    """Fields shared by every place payload."""
    google_place_id: str = Field(..., example="ChIJ2bO9V2cXHxURpnt0iDXu1xM")
    google_maps_url: str = Field(..., example="https://maps.app.goo.gl/abc123")
    name: str = Field(..., min_length=1, example="Raouche Rocks")
    address: Optional[str] = Field(None, example="Beirut, Lebanon")
    latitude: float = Field(..., example=33.8869)
    longitude: float = Field(..., example=35.4697)
    status: PlaceStatus = PlaceStatus.PLANNED
    rating: Optional[float] = None
    price_level: Optional[int] = None
    types: Optional[List[str]] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    opening_hours: Optional[List[str]] = None
    raw_reviews: Optional[List[Review]] = None
    ai_summary: Optional[str] = None
    ai_couple_insights: Optional[str] = None
    ai_vibe_tags: Optional[List[str]] = None
    ai_poetic_description: Optional[str] = None
    ai_general_description: Optional[str] = None
    ai_processed_at: Optional[str] = None
    photo_urls: Optional[List[str]] = None
    added_by: Author = Field(..., example="khaled")

class PlaceCreate(PlaceBase):
    """Schema for saving a newly resolved place."""
    pass

class PlaceUpdate(BaseModel):
    """Partial update. Only the fields present in the request body are written."""
    google_place_id: Optional[str] = None
    google_maps_url: Optional[str] = None
    name: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    status: Optional[PlaceStatus] = None
    rating: Optional[float] = None
    price_level: Optional[int] = None
    types: Optional[List[str]] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    opening_hours: Optional[List[str]] = None
    raw_reviews: Optional[List[Review]] = None
    ai_summary: Optional[str] = None
    ai_couple_insights: Optional[str] = None
    ai_vibe_tags: Optional[List[str]] = None
    ai_poetic_description: Optional[str] = None
    ai_general_description: Optional[str] = None
    ai_processed_at: Optional[str] = None
    photo_urls: Optional[List[str]] = None
    added_by: Optional[Author] = None

class PlaceInfo(PlaceBase):
    """Schema for returning a place, with its notes, tags and photos."""
    id: str
    created_at: str
    updated_at: Optional[str] = None
    notes: List[NoteInfo] = []
    tags: List[TagInfo] = []
    photos: List[PhotoInfo] = []

class DeleteResult(BaseModel):
    success: bool
