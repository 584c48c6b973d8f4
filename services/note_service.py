from firebase_admin import db
import datetime

from core.exceptions import NotFoundError
from schemas.note_schema import NoteCreate, NoteInfo

def create_note(note_data: NoteCreate) -> NoteInfo:
    """Saves a new note against an existing place."""
    place_ref = db.reference(f'places/{note_data.place_id}')
    if not place_ref.get(shallow=True):
        raise NotFoundError("Place not found.")

    notes_ref = db.reference('notes')
    new_note_ref = notes_ref.push()
    now = datetime.datetime.utcnow().isoformat()

    data_to_save = {
        "place_id": note_data.place_id,
        "author": note_data.author.value,
        "content": note_data.content,
        "created_at": now,
        "updated_at": now,
    }

    new_note_ref.set(data_to_save)
    return NoteInfo(id=new_note_ref.key, **data_to_save)
