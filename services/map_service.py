import hashlib
import time
from typing import Dict, List, Optional

import httpx
from loguru import logger

from core.config import settings
from core.exceptions import NotFoundError
from schemas.map_schema import ResolvedPlace
from schemas.place_schema import Review
from services.maps_url_parser import (
    Coordinates,
    ParsedMapsUrl,
    extract_search_query,
    is_google_maps_url,
    is_short_url,
    looks_like_url,
    normalize_maps_input,
    parse_google_maps_url,
    parse_plain_query,
)

GOOGLE_MAPS_API_URL = "https://maps.googleapis.com/maps/api"
DETAILS_FIELDS = (
    "place_id,name,formatted_address,geometry,rating,price_level,types,"
    "formatted_phone_number,website,opening_hours,reviews,photos,editorial_summary"
)
MAX_PHOTOS = 6
PHOTO_MAX_WIDTH = 800
SEARCH_RADIUS_METERS = 1000
REQUEST_TIMEOUT = 15.0


async def expand_short_url(url: str, client: httpx.AsyncClient) -> str:
    """
    Follows the redirect behind a goo.gl / maps.app.goo.gl link.
    If the request fails the original link is returned unchanged.
    """
    try:
        response = await client.head(url, follow_redirects=True, timeout=REQUEST_TIMEOUT)
        expanded = str(response.url)
        logger.info(f"Expanded short link {url} -> {expanded}")
        return expanded
    except httpx.HTTPError as e:
        logger.warning(f"Failed to expand shortened URL {url}: {type(e).__name__} - {e}")
        return url


async def _get_maps_json(client: httpx.AsyncClient, endpoint: str, params: Dict) -> Optional[Dict]:
    """GETs a Maps Platform endpoint. Any failure, including a non-OK status, comes back as None."""
    params = {**params, "key": settings.GOOGLE_MAPS_API_KEY}
    try:
        response = await client.get(f"{GOOGLE_MAPS_API_URL}/{endpoint}", params=params, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as e:
        logger.error(f"Google Maps {endpoint} HTTP error: {e.response.status_code} - {e.response.text[:200]}")
        return None
    except httpx.HTTPError as e:
        logger.error(f"Request error to Google Maps {endpoint}: {type(e).__name__} - {e}")
        return None
    except ValueError as e:
        logger.error(f"Google Maps {endpoint} returned invalid JSON: {e}")
        return None

    if not isinstance(data, dict) or data.get("status") != "OK":
        status = data.get("status") if isinstance(data, dict) else None
        logger.info(f"Google Maps {endpoint} returned status {status}")
        return None
    return data


def _photo_urls(photos: List[Dict]) -> List[str]:
    urls = []
    for photo in (photos or [])[:MAX_PHOTOS]:
        reference = photo.get("photo_reference")
        if reference:
            urls.append(
                f"{GOOGLE_MAPS_API_URL}/place/photo?maxwidth={PHOTO_MAX_WIDTH}"
                f"&photo_reference={reference}&key={settings.GOOGLE_MAPS_API_KEY}"
            )
    return urls


def _to_resolved_place(place: Dict, fallback: Optional[Coordinates]) -> Optional[ResolvedPlace]:
    location = (place.get("geometry") or {}).get("location") or {}
    lat, lng = location.get("lat"), location.get("lng")
    if (lat is None or lng is None) and fallback:
        lat, lng = fallback.lat, fallback.lng
    name = place.get("name") or place.get("formatted_address")
    if lat is None or lng is None or not name:
        return None

    reviews = [
        Review(text=r.get("text") or "", rating=r.get("rating"), author_name=r.get("author_name"))
        for r in place.get("reviews") or []
    ]

    return ResolvedPlace(
        place_id=place.get("place_id"),
        name=name,
        address=place.get("formatted_address"),
        latitude=lat,
        longitude=lng,
        rating=place.get("rating"),
        price_level=place.get("price_level"),
        types=place.get("types") or [],
        phone=place.get("formatted_phone_number"),
        website=place.get("website"),
        opening_hours=(place.get("opening_hours") or {}).get("weekday_text"),
        reviews=reviews,
        photo_urls=_photo_urls(place.get("photos")),
        editorial_summary=(place.get("editorial_summary") or {}).get("overview"),
    )


async def get_place_by_id(
    place_id: str,
    client: httpx.AsyncClient,
    fallback: Optional[Coordinates] = None,
) -> Optional[ResolvedPlace]:
    """Fetches full details for a place ID. Numeric identifiers are looked up as a CID."""
    params = {"fields": DETAILS_FIELDS}
    if place_id.isdigit():
        params["cid"] = place_id
    else:
        params["place_id"] = place_id

    data = await _get_maps_json(client, "place/details/json", params)
    if not data or not data.get("result"):
        return None
    return _to_resolved_place(data["result"], fallback)


async def search_place(
    query: str,
    coordinates: Optional[Coordinates],
    client: httpx.AsyncClient,
) -> Optional[ResolvedPlace]:
    """
    Text search for a place name, biased toward the given coordinates.
    The top result is then fetched in full by its place ID.
    """
    params = {"query": query}
    if coordinates:
        params["location"] = f"{coordinates.lat},{coordinates.lng}"
        params["radius"] = SEARCH_RADIUS_METERS

    data = await _get_maps_json(client, "place/textsearch/json", params)
    if not data or not data.get("results"):
        return None

    top_place_id = data["results"][0].get("place_id")
    if not top_place_id:
        return None
    return await get_place_by_id(top_place_id, client, fallback=coordinates)


async def reverse_geocode(coordinates: Coordinates, client: httpx.AsyncClient) -> Optional[ResolvedPlace]:
    """Turns bare coordinates into an address-only place. No ratings, reviews or photos."""
    data = await _get_maps_json(client, "geocode/json", {"latlng": f"{coordinates.lat},{coordinates.lng}"})
    if not data or not data.get("results"):
        return None

    result = data["results"][0]
    address = result.get("formatted_address") or f"{coordinates.lat}, {coordinates.lng}"
    return ResolvedPlace(
        place_id=result.get("place_id"),
        name=address.split(",")[0].strip(),
        address=address,
        latitude=coordinates.lat,
        longitude=coordinates.lng,
        types=result.get("types") or [],
    )


MOCK_PLACES = [
    {
        "name": "Byblos Old Souk",
        "address": "Byblos, Lebanon",
        "latitude": 34.1205,
        "longitude": 35.6481,
        "types": ["tourist_attraction", "point_of_interest"],
        "photo_urls": [
            "https://images.unsplash.com/photo-1507003211169-0a1dd7228f2d?w=800",
            "https://images.unsplash.com/photo-1518020382113-a7e8fc38eac9?w=800",
            "https://images.unsplash.com/photo-1506905925346-21bda4d32df4?w=800",
        ],
    },
    {
        "name": "Jeita Grotto",
        "address": "Jeita, Lebanon",
        "latitude": 33.9425,
        "longitude": 35.6381,
        "types": ["natural_feature", "tourist_attraction"],
        "photo_urls": [
            "https://images.unsplash.com/photo-1504893524553-b855bce32c67?w=800",
            "https://images.unsplash.com/photo-1544551763-46a013bb70d5?w=800",
            "https://images.unsplash.com/photo-1470071459604-3b5ec3a7fe05?w=800",
        ],
    },
    {
        "name": "Raouche Rocks",
        "address": "Beirut, Lebanon",
        "latitude": 33.8869,
        "longitude": 35.4697,
        "types": ["natural_feature", "tourist_attraction"],
        "photo_urls": [
            "https://images.unsplash.com/photo-1501594907352-04cda38ebc29?w=800",
            "https://images.unsplash.com/photo-1433086966358-54859d0ed716?w=800",
            "https://images.unsplash.com/photo-1469474968028-56623f02e42e?w=800",
        ],
    },
]


def get_mock_place(parsed: ParsedMapsUrl, url: str) -> ResolvedPlace:
    """
    Demo data for running without a Maps key. The same URL always maps to the
    same demo place; any name or coordinates parsed from it are kept.
    """
    index = int(hashlib.md5(url.encode()).hexdigest(), 16) % len(MOCK_PLACES)
    mock = MOCK_PLACES[index]
    coordinates = parsed.coordinates

    return ResolvedPlace(
        place_id=f"mock_{int(time.time() * 1000)}",
        name=parsed.place_name or mock["name"],
        address=mock["address"],
        latitude=coordinates.lat if coordinates else mock["latitude"],
        longitude=coordinates.lng if coordinates else mock["longitude"],
        rating=4.5,
        price_level=2,
        types=mock["types"],
        opening_hours=["Monday: 9:00 AM – 6:00 PM", "Tuesday: 9:00 AM – 6:00 PM"],
        reviews=[
            Review(
                text="Beautiful place with amazing views. Perfect for a quiet afternoon together.",
                rating=5,
                author_name="Traveler",
            ),
            Review(
                text="Such a romantic spot! We loved watching the sunset here.",
                rating=5,
                author_name="Couple Explorer",
            ),
        ],
        photo_urls=mock["photo_urls"],
        editorial_summary="A stunning destination that captures the essence of natural beauty and cultural heritage.",
    )


async def _resolve(text: str, client: httpx.AsyncClient) -> ResolvedPlace:
    if looks_like_url(text):
        url = text
        if is_short_url(url):
            url = await expand_short_url(url, client)
        parsed = parse_google_maps_url(url)
        if not parsed.place_name:
            parsed.place_name = extract_search_query(url)
    else:
        url = text
        parsed = parse_plain_query(text)

    if not settings.GOOGLE_MAPS_API_KEY:
        logger.warning("GOOGLE_MAPS_API_KEY is not configured, returning a demo place.")
        return get_mock_place(parsed, url)

    logger.info(
        f"Resolving place: id={parsed.place_id} name={parsed.place_name} coords={parsed.coordinates}"
    )

    place = None
    if parsed.place_id:
        place = await get_place_by_id(parsed.place_id, client, fallback=parsed.coordinates)
    if place is None and parsed.place_name:
        place = await search_place(parsed.place_name, parsed.coordinates, client)
    if place is None and parsed.coordinates:
        place = await reverse_geocode(parsed.coordinates, client)

    if place is None:
        raise NotFoundError("Could not find place details")
    return place


async def resolve_place(raw: str, client: Optional[httpx.AsyncClient] = None) -> ResolvedPlace:
    """
    Resolves a Google Maps link, or a plain search string, to a single place.

    Tries, in order, and stops at the first hit:
    the identifier from the link, a text search on the name (biased toward
    any coordinates in the link), then reverse geocoding of the coordinates.
    Raises ``ValueError`` for input that is not a Maps link or search text,
    and ``NotFoundError`` when every step comes back empty.
    """
    text = normalize_maps_input(raw)
    if not text:
        raise ValueError("A Google Maps URL or place name is required.")
    if looks_like_url(text) and not is_google_maps_url(text):
        raise ValueError("Invalid Google Maps URL")

    if client is None:
        async with httpx.AsyncClient() as owned_client:
            return await _resolve(text, owned_client)
    return await _resolve(text, client)
