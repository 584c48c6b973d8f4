from pydantic import BaseModel, Field
from typing import Optional

from schemas.note_schema import Author

class PhotoInfo(BaseModel):
    """Schema for returning an uploaded photo."""
    id: str
    place_id: str
    storage_path: str = Field(..., example="-OTVkKdynx9XAowsMP0S/1718000000000-k3j9x2.jpg")
    caption: Optional[str] = None
    uploaded_by: Author
    created_at: str
    public_url: Optional[str] = None
