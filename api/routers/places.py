from fastapi import APIRouter, HTTPException
from typing import List
from loguru import logger

from core.exceptions import NotFoundError, VibeRefreshError
from schemas.ai_schema import AnalyzeRequest, VibeAnalysis
from schemas.map_schema import ExtractRequest, ResolvedPlace
from schemas.place_schema import DeleteResult, PlaceCreate, PlaceInfo, PlaceUpdate
from services import ai_service, map_service, place_service

router = APIRouter(
    prefix="/places",
    tags=["Places"],
    responses={404: {"description": "Not found"}},
)

@router.get("", response_model=List[PlaceInfo])
async def get_places():
    """Lists every place with its notes, tags and photos, newest first."""
    try:
        return place_service.list_places()
    except Exception:
        logger.exception("Error fetching places")
        raise HTTPException(status_code=500, detail="Failed to fetch places")

@router.post("", response_model=PlaceInfo)
async def create_place(place: PlaceCreate):
    """Saves a resolved place to the journal."""
    try:
        return place_service.create_place(place_data=place)
    except Exception:
        logger.exception(f"Error creating place '{place.name}'")
        raise HTTPException(status_code=500, detail="Failed to create place")

@router.post("/analyze", response_model=VibeAnalysis)
async def analyze_place(request: AnalyzeRequest):
    """
    Generates the vibe for a place. A first analysis always answers, falling
    back to placeholder text; a refresh (isRefresh) reports failures instead.
    """
    try:
        return await ai_service.annotate(request)
    except VibeRefreshError:
        logger.exception(f"Vibe refresh failed for '{request.place_name}'")
        raise HTTPException(status_code=500, detail="Failed to analyze place")
    except Exception:
        logger.exception(f"Error analyzing place '{request.place_name}'")
        raise HTTPException(status_code=500, detail="Failed to analyze place")

@router.post("/extract", response_model=ResolvedPlace)
async def extract_place(request: ExtractRequest):
    """Resolves a Google Maps link, or a plain search, to full place details."""
    try:
        return await map_service.resolve_place(request.url)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception(f"Error extracting place from '{request.url}'")
        raise HTTPException(status_code=500, detail="Failed to extract place data")

@router.patch("/{place_id}", response_model=PlaceInfo)
async def update_place(place_id: str, updates: PlaceUpdate):
    """Partially updates a place (status changes, AI refresh results, ...)."""
    try:
        return place_service.update_place(place_id=place_id, update_data=updates)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception(f"Error updating place {place_id}")
        raise HTTPException(status_code=500, detail="Failed to update place")

@router.delete("/{place_id}", response_model=DeleteResult)
async def delete_place(place_id: str):
    """Deletes a place; its stored photos are cleaned up best-effort."""
    try:
        return place_service.delete_place(place_id=place_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        logger.exception(f"Error deleting place {place_id}")
        raise HTTPException(status_code=500, detail="Failed to delete place")
