from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from typing import Optional
from loguru import logger

from core.exceptions import NotFoundError
from schemas.note_schema import Author
from schemas.photo_schema import PhotoInfo
from services import photo_service

router = APIRouter(
    prefix="/photos",
    tags=["Photos"],
    responses={404: {"description": "Not found"}},
)

@router.post("", response_model=PhotoInfo)
async def upload_photo(
    file: UploadFile = File(...),
    place_id: str = Form(...),
    author: Author = Form(...),
    caption: Optional[str] = Form(None),
):
    """Uploads a photo for a place and records it."""
    content = await file.read()
    try:
        return photo_service.upload_photo(
            content=content,
            filename=file.filename,
            content_type=file.content_type,
            place_id=place_id,
            author=author,
            caption=caption,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception(f"Error processing photo upload for place {place_id}")
        raise HTTPException(status_code=500, detail="Failed to save photo")
