from firebase_admin import db
import datetime
from typing import Dict, List

from loguru import logger

from core.exceptions import NotFoundError
from schemas.place_schema import PlaceCreate, PlaceUpdate
from services import firebase_service

# Columns that can be changed by a PATCH but never cleared
NON_NULLABLE_FIELDS = {
    "google_place_id", "google_maps_url", "name", "latitude", "longitude", "status", "added_by",
}

def _now() -> str:
    return datetime.datetime.utcnow().isoformat()

def _with_id(item_id: str, data: Dict) -> Dict:
    item = dict(data)
    item["id"] = item_id
    return item

def create_place(place_data: PlaceCreate) -> Dict:
    """Saves a resolved place to the journal and returns the stored row."""
    places_ref = db.reference('places')
    new_place_ref = places_ref.push()

    data_to_save = {
        key: value
        for key, value in place_data.model_dump(mode="json", by_alias=True).items()
        if value is not None
    }
    now = _now()
    data_to_save['created_at'] = now
    data_to_save['updated_at'] = now

    new_place_ref.set(data_to_save)
    logger.info(f"Place created: {new_place_ref.key} ({place_data.name}) by {place_data.added_by.value}")
    return _with_id(new_place_ref.key, data_to_save)

def _tags_by_place(place_tags: Dict, tags: Dict) -> Dict[str, List[Dict]]:
    result = {}
    for place_id, tag_ids in place_tags.items():
        resolved = [_with_id(tag_id, tags[tag_id]) for tag_id in (tag_ids or {}) if tag_id in tags]
        result[place_id] = sorted(resolved, key=lambda tag: tag.get('name', ''))
    return result

def _group_by_place(items: Dict) -> Dict[str, List[Dict]]:
    grouped: Dict[str, List[Dict]] = {}
    for item_id, item in items.items():
        grouped.setdefault(item.get('place_id'), []).append(_with_id(item_id, item))
    for entries in grouped.values():
        entries.sort(key=lambda entry: entry.get('created_at', ''))
    return grouped

def list_places() -> List[Dict]:
    """
    Every place with its notes, tags and photos, newest first.
    Each collection is read once and joined in memory.
    """
    places = db.reference('places').get() or {}
    if not places:
        return []

    notes = _group_by_place(db.reference('notes').get() or {})
    photos = _group_by_place(db.reference('photos').get() or {})
    tags = _tags_by_place(db.reference('place_tags').get() or {}, db.reference('tags').get() or {})

    places_list = []
    for place_id, place_data in places.items():
        place = _with_id(place_id, place_data)
        place['notes'] = notes.get(place_id, [])
        place['photos'] = photos.get(place_id, [])
        place['tags'] = tags.get(place_id, [])
        places_list.append(place)

    places_list.sort(key=lambda place: place.get('created_at', ''), reverse=True)
    return places_list

def get_place(place_id: str) -> Dict:
    place_data = db.reference(f'places/{place_id}').get()
    if not place_data:
        raise NotFoundError("Place not found.")
    return _with_id(place_id, place_data)

def update_place(place_id: str, update_data: PlaceUpdate) -> Dict:
    """
    Writes only the fields present in the request. A status change, including
    to been_there, is accepted whether or not the place has photos.
    """
    place_ref = db.reference(f'places/{place_id}')
    if not place_ref.get():
        raise NotFoundError("Place not found.")

    updates = update_data.model_dump(mode="json", by_alias=True, exclude_unset=True)
    if not updates:
        raise ValueError("No fields to update.")
    cleared = sorted(key for key in NON_NULLABLE_FIELDS if key in updates and updates[key] is None)
    if cleared:
        raise ValueError(f"Fields cannot be null: {', '.join(cleared)}")

    updates['updated_at'] = _now()
    place_ref.update(updates)
    return get_place(place_id)

def _remove_photo_objects(storage_paths: List[str]):
    """Best-effort removal of photo binaries. Failures are logged, never raised."""
    if not storage_paths:
        return
    try:
        bucket = firebase_service.get_bucket()
    except Exception as e:
        logger.warning(f"Storage unavailable, leaving {len(storage_paths)} photo object(s) behind: {e}")
        return

    for path in storage_paths:
        try:
            bucket.blob(path).delete()
        except Exception as e:
            logger.warning(f"Failed to delete photo object {path}: {type(e).__name__} - {e}")

def delete_place(place_id: str) -> Dict:
    """
    Deletes a place with its notes, photo rows and tag links.
    Photo binaries are removed best-effort; the place is deleted either way.
    """
    place_ref = db.reference(f'places/{place_id}')
    if not place_ref.get():
        raise NotFoundError("Place not found.")

    photos = db.reference('photos').order_by_child('place_id').equal_to(place_id).get() or {}
    _remove_photo_objects([photo.get('storage_path') for photo in photos.values() if photo.get('storage_path')])
    for photo_id in photos:
        db.reference(f'photos/{photo_id}').delete()

    notes = db.reference('notes').order_by_child('place_id').equal_to(place_id).get() or {}
    for note_id in notes:
        db.reference(f'notes/{note_id}').delete()

    db.reference(f'place_tags/{place_id}').delete()
    place_ref.delete()
    logger.info(f"Place deleted: {place_id} ({len(photos)} photo(s), {len(notes)} note(s))")
    return {"success": True}

def list_tags() -> List[Dict]:
    """Tags are seeded outside the app; this only reads them."""
    tags = db.reference('tags').get() or {}
    return sorted((_with_id(tag_id, tag) for tag_id, tag in tags.items()), key=lambda tag: tag.get('name', ''))
