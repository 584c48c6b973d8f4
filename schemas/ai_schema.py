from pydantic import BaseModel, Field, field_validator
from typing import Any, List, Optional

from schemas.note_schema import Author
from schemas.place_schema import Review

class ExistingNote(BaseModel):
    """A personal note passed along to a vibe refresh."""
    author: Author
    content: str

class AnalyzeRequest(BaseModel):
    """Schema for requesting a vibe analysis (or refresh) of a place."""
    place_name: str = Field(..., alias="placeName", min_length=1, example="Jeita Grotto")
    place_types: Optional[List[str]] = Field(None, alias="placeTypes", example=["natural_feature", "tourist_attraction"])
    reviews: Optional[List[Review]] = None
    existing_notes: Optional[List[ExistingNote]] = Field(None, alias="existingNotes")
    is_refresh: bool = Field(False, alias="isRefresh")
    editorial_summary: Optional[str] = Field(None, alias="editorialSummary")

    class Config:
        populate_by_name = True

class VibeAnalysis(BaseModel):
    """The five AI-derived fields attached to a place.

    Provider output is loaded straight into this model, so every field has a
    default and malformed values are coerced to empty ones instead of failing.
    """
    summary: str = ""
    couple_insights: str = Field("", alias="coupleInsights")
    vibe_tags: List[str] = Field(default_factory=list, alias="vibeTags")
    poetic_description: str = Field("", alias="poeticDescription")
    general_description: str = Field("", alias="generalDescription")

    class Config:
        populate_by_name = True

    @field_validator("summary", "couple_insights", "poetic_description", "general_description", mode="before")
    @classmethod
    def text_or_empty(cls, value: Any) -> str:
        if not isinstance(value, str):
            return ""
        return value.strip()

    @field_validator("vibe_tags", mode="before")
    @classmethod
    def tags_or_empty(cls, value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        return [tag.strip() for tag in value if isinstance(tag, str) and tag.strip()]
