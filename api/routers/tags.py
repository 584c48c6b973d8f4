from fastapi import APIRouter, HTTPException
from typing import List
from loguru import logger

from schemas.place_schema import TagInfo
from services import place_service

router = APIRouter(
    prefix="/tags",
    tags=["Tags"],
)

@router.get("", response_model=List[TagInfo])
async def get_tags():
    """Lists the tags available for filtering. Tags are read-only here."""
    try:
        return place_service.list_tags()
    except Exception:
        logger.exception("Error fetching tags")
        raise HTTPException(status_code=500, detail="Failed to fetch tags")
