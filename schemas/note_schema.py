from pydantic import BaseModel, Field, field_validator
from enum import Enum
from typing import Optional
import datetime

class Author(str, Enum):
    """The two people who keep the journal. Nobody else can write to it."""
    KHALED = "khaled"
    AMAL = "amal"

class NoteCreate(BaseModel):
    """Schema for adding a note to a place."""
    place_id: str = Field(..., example="-OTVkKdynx9XAowsMP0S")
    author: Author = Field(..., example="amal")
    content: str = Field(..., example="The sunset from the corniche was unreal.")

    @field_validator("place_id", "content")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

class NoteInfo(BaseModel):
    """Schema for returning a note from the database."""
    id: str
    place_id: str
    author: Author
    content: str
    created_at: str = Field(..., example=str(datetime.datetime.utcnow()))
    updated_at: Optional[str] = None

    class Config:
        from_attributes = True
