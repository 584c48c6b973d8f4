from firebase_admin import db
import datetime
import time
import uuid
from typing import Optional

from loguru import logger

from core.exceptions import NotFoundError
from schemas.note_schema import Author
from schemas.photo_schema import PhotoInfo
from services import firebase_service

def build_storage_path(place_id: str, filename: Optional[str]) -> str:
    """<place_id>/<millis>-<random>.<ext>, so uploads for a place share a folder."""
    extension = "jpg"
    if filename and "." in filename:
        extension = filename.rsplit(".", 1)[-1].lower() or extension
    return f"{place_id}/{int(time.time() * 1000)}-{uuid.uuid4().hex[:10]}.{extension}"

def _delete_uploaded_blob(blob):
    try:
        blob.delete()
        logger.info(f"Removed orphaned photo object {blob.name}")
    except Exception as e:
        logger.warning(f"Could not remove orphaned photo object {blob.name}: {type(e).__name__} - {e}")

def upload_photo(
    content: bytes,
    filename: Optional[str],
    content_type: Optional[str],
    place_id: str,
    author: Author,
    caption: Optional[str] = None,
) -> PhotoInfo:
    """
    Uploads a photo binary, then records it.
    If the record cannot be written the binary is deleted again (best-effort)
    and the original error is raised.
    """
    if not content or not place_id:
        raise ValueError("Missing required fields")
    if not db.reference(f'places/{place_id}').get(shallow=True):
        raise NotFoundError("Place not found.")

    storage_path = build_storage_path(place_id, filename)
    blob = firebase_service.get_bucket().blob(storage_path)
    blob.upload_from_string(content, content_type=content_type or "application/octet-stream")

    try:
        new_photo_ref = db.reference('photos').push()
        data_to_save = {
            "place_id": place_id,
            "storage_path": storage_path,
            "caption": caption or None,
            "uploaded_by": author.value,
            "created_at": datetime.datetime.utcnow().isoformat(),
            "public_url": firebase_service.public_url_for(storage_path, blob),
        }
        new_photo_ref.set({key: value for key, value in data_to_save.items() if value is not None})
    except Exception as e:
        logger.error(f"Error inserting photo record for {storage_path}: {type(e).__name__} - {e}")
        _delete_uploaded_blob(blob)
        raise

    return PhotoInfo(id=new_photo_ref.key, **data_to_save)
