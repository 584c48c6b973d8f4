"""
In-memory state for a journal session: the place list, the selected place,
list filters and the map viewport.

The store is a plain object handed to whatever needs it. Only the current
user and the map viewport survive a restart, through ``save``/``load``.
"""
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from loguru import logger

from schemas.note_schema import Author
from schemas.place_schema import PlaceStatus

DEFAULT_USER = Author.KHALED.value
DEFAULT_MAP_CENTER = [35.5, 33.9]  # lng, lat: Lebanon
DEFAULT_MAP_ZOOM = 8
ALL_STATUSES = "all"


class JournalStore:
    def __init__(
        self,
        current_user: str = DEFAULT_USER,
        map_center: Optional[List[float]] = None,
        map_zoom: float = DEFAULT_MAP_ZOOM,
        places: Optional[List[Dict[str, Any]]] = None,
    ):
        self.current_user = Author(current_user).value
        self.map_center = list(map_center or DEFAULT_MAP_CENTER)
        self.map_zoom = map_zoom

        self.places: List[Dict[str, Any]] = list(places or [])
        self.selected_place_id: Optional[str] = None

        self.status_filter = ALL_STATUSES
        self.tag_filter: List[str] = []
        self.search_query = ""

        self.is_panel_open = False
        self.is_adding_place = False

    # -- user & viewport -------------------------------------------------

    def set_current_user(self, user: str):
        self.current_user = Author(user).value

    def set_map_view(self, center: List[float], zoom: float):
        self.map_center = [float(center[0]), float(center[1])]
        self.map_zoom = zoom

    # -- places ----------------------------------------------------------

    def set_places(self, places: List[Dict[str, Any]]):
        self.places = list(places)
        if self.selected_place_id and self.get_place(self.selected_place_id) is None:
            self.select_place(None)

    def get_place(self, place_id: str) -> Optional[Dict[str, Any]]:
        return next((place for place in self.places if place.get("id") == place_id), None)

    def add_place(self, place: Dict[str, Any]):
        self.places.append(place)

    def update_place(self, place_id: str, updates: Dict[str, Any]):
        """Shallow-merges ``updates`` into the matching place. Unknown ids are ignored."""
        self.places = [
            {**place, **updates} if place.get("id") == place_id else place
            for place in self.places
        ]

    def remove_place(self, place_id: str):
        self.places = [place for place in self.places if place.get("id") != place_id]
        if self.selected_place_id == place_id:
            self.select_place(None)

    # -- selection -------------------------------------------------------

    def select_place(self, place_id: Optional[str]):
        self.selected_place_id = place_id
        self.is_panel_open = place_id is not None

    @property
    def selected_place(self) -> Optional[Dict[str, Any]]:
        if self.selected_place_id is None:
            return None
        return self.get_place(self.selected_place_id)

    # -- filters ---------------------------------------------------------

    def set_status_filter(self, status: str):
        self.status_filter = status if status == ALL_STATUSES else PlaceStatus(status).value

    def set_tag_filter(self, tag_ids: List[str]):
        self.tag_filter = list(tag_ids)

    def set_search_query(self, query: str):
        self.search_query = query or ""

    def _matches(self, place: Dict[str, Any]) -> bool:
        if self.status_filter != ALL_STATUSES and place.get("status") != self.status_filter:
            return False

        tags = place.get("tags") or []
        if self.tag_filter:
            tag_ids = {tag.get("id") for tag in tags}
            if not any(tag_id in tag_ids for tag_id in self.tag_filter):
                return False

        if self.search_query:
            query = self.search_query.lower()
            haystack = [place.get("name") or "", place.get("address") or ""]
            haystack += [tag.get("name") or "" for tag in tags]
            haystack += place.get("ai_vibe_tags") or []
            if not any(query in text.lower() for text in haystack):
                return False

        return True

    @property
    def filtered_places(self) -> List[Dict[str, Any]]:
        return [place for place in self.places if self._matches(place)]

    @staticmethod
    def needs_photo(place: Dict[str, Any], status: str) -> bool:
        """
        True when moving to been_there with no photo yet. Only a prompt for the
        UI; the backend accepts the status change regardless.
        """
        if status != PlaceStatus.BEEN_THERE.value:
            return False
        return not (place.get("photo_urls") or place.get("photos"))

    # -- persistence -----------------------------------------------------

    def to_persisted(self) -> Dict[str, Any]:
        return {
            "currentUser": self.current_user,
            "mapCenter": list(self.map_center),
            "mapZoom": self.map_zoom,
        }

    @classmethod
    def from_persisted(cls, data: Optional[Dict[str, Any]]) -> "JournalStore":
        """Rebuilds a store from saved state. Anything missing or invalid falls back to defaults."""
        data = data if isinstance(data, dict) else {}

        user = data.get("currentUser")
        if user not in {author.value for author in Author}:
            user = DEFAULT_USER

        center = data.get("mapCenter")
        if not (
            isinstance(center, list)
            and len(center) == 2
            and all(isinstance(value, (int, float)) and not isinstance(value, bool) for value in center)
        ):
            center = DEFAULT_MAP_CENTER

        zoom = data.get("mapZoom")
        if not isinstance(zoom, (int, float)) or isinstance(zoom, bool):
            zoom = DEFAULT_MAP_ZOOM

        return cls(current_user=user, map_center=center, map_zoom=zoom)

    def save(self, path: Union[str, Path]):
        Path(path).write_text(json.dumps(self.to_persisted()), encoding="utf-8")

    @classmethod
    def load(cls, path: Union[str, Path]) -> "JournalStore":
        path = Path(path)
        if not path.exists():
            return cls()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable journal state at {path}: {e}")
            return cls()
        return cls.from_persisted(data)
