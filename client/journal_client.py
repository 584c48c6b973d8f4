import datetime
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from client.store import JournalStore
from schemas.place_schema import PlaceStatus
from services.maps_url_parser import looks_like_url, normalize_maps_input

API_PREFIX = "/api"


class JournalClientError(Exception):
    """A request to the journal API came back with an error status."""

    def __init__(self, status_code: int, detail: Any):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")


class JournalClient:
    """
    Drives the journal API for one user session and keeps a ``JournalStore``
    in step with it. Nothing is retried; a failed action is left for the
    user to trigger again.
    """

    def __init__(self, http: httpx.Client, store: JournalStore):
        self.http = http
        self.store = store

    def _request(self, method: str, path: str, **kwargs) -> Any:
        response = self.http.request(method, f"{API_PREFIX}{path}", **kwargs)
        if response.is_error:
            try:
                detail = response.json().get("detail")
            except ValueError:
                detail = response.text
            raise JournalClientError(response.status_code, detail)
        return response.json()

    def _require_place(self, place_id: str) -> Dict[str, Any]:
        place = self.store.get_place(place_id)
        if place is None:
            raise KeyError(f"Place {place_id} is not loaded")
        return place

    def load_places(self) -> List[Dict[str, Any]]:
        places = self._request("GET", "/places")
        self.store.set_places(places)
        return places

    def add_place_from_url(self, url: str, status: str = PlaceStatus.PLANNED.value) -> Dict[str, Any]:
        """
        Resolve -> analyze -> save. A failed analysis does not stop the place
        from being saved, it is simply stored without AI fields.
        """
        self.store.is_adding_place = True
        try:
            resolved = self._request("POST", "/places/extract", json={"url": url})

            try:
                analysis = self._request("POST", "/places/analyze", json={
                    "placeName": resolved["name"],
                    "placeTypes": resolved.get("types") or [],
                    "reviews": resolved.get("reviews") or [],
                    "editorialSummary": resolved.get("editorialSummary"),
                    "isRefresh": False,
                })
            except JournalClientError as e:
                logger.warning(f"Vibe analysis failed for '{resolved['name']}', saving without it: {e}")
                analysis = None

            place_id = resolved.get("placeId") or ""
            link = normalize_maps_input(url)
            maps_url = link if looks_like_url(link) else (
                f"https://www.google.com/maps/place/?q=place_id:{place_id}"
            )
            payload = {
                "google_place_id": place_id,
                "google_maps_url": maps_url,
                "name": resolved["name"],
                "address": resolved.get("address"),
                "latitude": resolved["latitude"],
                "longitude": resolved["longitude"],
                "status": status,
                "rating": resolved.get("rating"),
                "price_level": resolved.get("priceLevel"),
                "types": resolved.get("types") or [],
                "phone": resolved.get("phone"),
                "website": resolved.get("website"),
                "opening_hours": resolved.get("openingHours"),
                "raw_reviews": resolved.get("reviews") or [],
                "photo_urls": resolved.get("photoUrls") or [],
                "added_by": self.store.current_user,
            }
            if analysis:
                payload.update(self._vibe_fields(analysis))

            saved = self._request("POST", "/places", json=payload)
            self.store.add_place(saved)
            self.store.select_place(saved["id"])
            return saved
        finally:
            self.store.is_adding_place = False

    def change_status(self, place_id: str, status: str) -> Dict[str, Any]:
        """
        Updates the status locally first, then confirms with the backend.
        If the backend does not confirm, the previous status is put back.
        """
        place = self._require_place(place_id)
        previous = place.get("status")
        new_status = PlaceStatus(status).value

        self.store.update_place(place_id, {"status": new_status})
        try:
            return self._request("PATCH", f"/places/{place_id}", json={"status": new_status})
        except (JournalClientError, httpx.HTTPError):
            self.store.update_place(place_id, {"status": previous})
            raise

    @staticmethod
    def _vibe_fields(analysis: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "ai_summary": analysis.get("summary"),
            "ai_couple_insights": analysis.get("coupleInsights"),
            "ai_vibe_tags": analysis.get("vibeTags"),
            "ai_poetic_description": analysis.get("poeticDescription"),
            "ai_general_description": analysis.get("generalDescription"),
            "ai_processed_at": datetime.datetime.utcnow().isoformat(),
        }

    def refresh_vibe(self, place_id: str) -> Dict[str, Any]:
        """
        Re-runs the analysis with the couple's notes. The place is only touched
        once a fresh analysis has come back, so a failure keeps the old vibe.
        """
        place = self._require_place(place_id)
        analysis = self._request("POST", "/places/analyze", json={
            "placeName": place["name"],
            "placeTypes": place.get("types") or [],
            "reviews": place.get("raw_reviews") or [],
            "existingNotes": [
                {"author": note["author"], "content": note["content"]}
                for note in place.get("notes") or []
            ],
            "isRefresh": True,
        })

        fields = self._vibe_fields(analysis)
        updated = self._request("PATCH", f"/places/{place_id}", json=fields)
        self.store.update_place(place_id, fields)
        return updated

    def add_note(self, place_id: str, content: str) -> Dict[str, Any]:
        place = self._require_place(place_id)
        note = self._request("POST", "/notes", json={
            "place_id": place_id,
            "author": self.store.current_user,
            "content": content.strip(),
        })
        self.store.update_place(place_id, {"notes": [*(place.get("notes") or []), note]})
        return note

    def upload_photo(
        self,
        place_id: str,
        filename: str,
        content: bytes,
        caption: Optional[str] = None,
        content_type: str = "image/jpeg",
    ) -> Dict[str, Any]:
        place = self._require_place(place_id)
        data = {"place_id": place_id, "author": self.store.current_user}
        if caption:
            data["caption"] = caption
        photo = self._request(
            "POST",
            "/photos",
            data=data,
            files={"file": (filename, content, content_type)},
        )
        self.store.update_place(place_id, {"photos": [*(place.get("photos") or []), photo]})
        return photo

    def delete_place(self, place_id: str) -> bool:
        result = self._request("DELETE", f"/places/{place_id}")
        self.store.remove_place(place_id)
        return bool(result.get("success"))
