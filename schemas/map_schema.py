from pydantic import BaseModel, Field
from typing import List, Optional

from schemas.place_schema import Review

class ExtractRequest(BaseModel):
    """Schema for resolving a Google Maps link (or a plain search) into a place."""
    url: str = Field(..., example="https://www.google.com/maps/place/Raouche+Rocks/@33.8869,35.4697,14z")

class ResolvedPlace(BaseModel):
    """A place as returned by the resolver, before it is saved to the journal."""
    place_id: Optional[str] = Field(None, alias="placeId")
    name: str
    address: Optional[str] = None
    latitude: float
    longitude: float
    rating: Optional[float] = None
    price_level: Optional[int] = Field(None, alias="priceLevel")
    types: List[str] = []
    phone: Optional[str] = None
    website: Optional[str] = None
    opening_hours: Optional[List[str]] = Field(None, alias="openingHours")
    reviews: List[Review] = []
    photo_urls: List[str] = Field(default_factory=list, alias="photoUrls")
    editorial_summary: Optional[str] = Field(None, alias="editorialSummary")

    class Config:
        populate_by_name = True
