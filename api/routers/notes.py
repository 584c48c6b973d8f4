from fastapi import APIRouter, HTTPException
from loguru import logger

from core.exceptions import NotFoundError
from schemas.note_schema import NoteCreate, NoteInfo
from services import note_service

router = APIRouter(
    prefix="/notes",
    tags=["Notes"],
    responses={404: {"description": "Not found"}},
)

@router.post("", response_model=NoteInfo)
async def create_note(note: NoteCreate):
    """Adds a note to a place, signed by one of the two authors."""
    try:
        return note_service.create_note(note_data=note)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        logger.exception(f"Error creating note for place {note.place_id}")
        raise HTTPException(status_code=500, detail="Failed to create note")
