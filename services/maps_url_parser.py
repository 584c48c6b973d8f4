"""
Pure helpers for pulling a place out of a Google Maps link.

Nothing here touches the network. Short links (goo.gl) have to be expanded by
the caller first, see ``map_service.expand_short_url``.
"""
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote_plus

# !1s0x3e5f17...:0x13d7ee3588747ba6 inside the data= blob of a place page
_PLACE_ID_TOKEN = re.compile(r"!1s(0x[a-f0-9]+:[a-f0-9x]+)", re.IGNORECASE)
_CID_PARAM = re.compile(r"[?&]cid=(\d+)")
_FTID_PARAM = re.compile(r"ftid=(0x[a-f0-9]+:[a-f0-9x]+)", re.IGNORECASE)

_AT_COORDS = re.compile(r"@(-?\d+\.?\d*),(-?\d+\.?\d*),?(\d+(?:\.\d+)?)?z?")
_QUERY_COORDS = re.compile(r"[?&]q=(-?\d+\.?\d*),(-?\d+\.?\d*)")
_PLACE_NAME = re.compile(r"/place/([^/@?]+)")

_SEARCH_PATH = re.compile(r"/search/([^/?@]+)")
_QUERY_TEXT = re.compile(r"[?&]q=([^&]+)")
_COORDS_ONLY = re.compile(r"^-?\d+\.?\d*,\s*-?\d+\.?\d*$")

_GOOGLE_MAPS_PATTERNS = [
    re.compile(r"^https?://(www\.)?google\.[a-z.]+/maps"),
    re.compile(r"^https?://maps\.google\.[a-z.]+"),
    re.compile(r"^https?://goo\.gl/maps"),
    re.compile(r"^https?://maps\.app\.goo\.gl"),
    re.compile(r"^https?://goo\.gl/"),
]

# Same hosts as above, as typed or pasted without http(s)://
_SCHEMELESS_MAPS_HOST = re.compile(
    r"^((www\.)?google\.[a-z.]+/maps|maps\.google\.[a-z.]+|maps\.app\.goo\.gl|goo\.gl/)",
    re.IGNORECASE,
)


@dataclass
class Coordinates:
    lat: float
    lng: float


@dataclass
class ParsedMapsUrl:
    place_id: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    place_name: Optional[str] = None


def is_google_maps_url(url: str) -> bool:
    """Checks whether the string looks like any of the Google Maps link shapes."""
    candidate = (url or "").strip()
    return any(pattern.match(candidate) for pattern in _GOOGLE_MAPS_PATTERNS)


def is_short_url(url: str) -> bool:
    """goo.gl and maps.app.goo.gl links only carry a redirect, never the place data."""
    return "goo.gl" in (url or "")


def looks_like_url(text: str) -> bool:
    return bool(re.match(r"^https?://", (text or "").strip(), re.IGNORECASE))


def normalize_maps_input(text: str) -> str:
    """Adds ``https://`` to a Google Maps link pasted without its scheme. Anything else is returned stripped."""
    candidate = (text or "").strip()
    if not looks_like_url(candidate) and _SCHEMELESS_MAPS_HOST.match(candidate):
        return f"https://{candidate}"
    return candidate


def parse_google_maps_url(url: str) -> ParsedMapsUrl:
    """
    Extracts a place identifier, coordinates and a place name from a Google Maps URL.

    Each extractor runs on its own. When several identifier forms are present
    the place-id token wins over ``cid``, which wins over ``ftid``.
    Coordinates come from ``@lat,lng`` first and ``q=lat,lng`` second.
    """
    result = ParsedMapsUrl()
    clean_url = (url or "").strip()

    for pattern in (_PLACE_ID_TOKEN, _CID_PARAM, _FTID_PARAM):
        match = pattern.search(clean_url)
        if match:
            result.place_id = match.group(1)
            break

    coord_match = _AT_COORDS.search(clean_url) or _QUERY_COORDS.search(clean_url)
    if coord_match:
        result.coordinates = Coordinates(
            lat=float(coord_match.group(1)),
            lng=float(coord_match.group(2)),
        )

    name_match = _PLACE_NAME.search(clean_url)
    if name_match:
        name = unquote_plus(name_match.group(1)).strip()
        result.place_name = name or None

    return result


def parse_plain_query(text: str) -> ParsedMapsUrl:
    """Free text typed instead of a link: either a bare "lat,lng" pair or a place name."""
    query = (text or "").strip()
    if _COORDS_ONLY.match(query):
        lat, lng = (float(part) for part in query.split(","))
        return ParsedMapsUrl(coordinates=Coordinates(lat=lat, lng=lng))
    return ParsedMapsUrl(place_name=query or None)


def extract_search_query(url: str) -> Optional[str]:
    """
    Fallback text for a search when the URL has no ``/place/`` segment.
    Reads ``/search/<text>`` or a ``q=<text>`` that is not just a coordinate pair.
    """
    search_match = _SEARCH_PATH.search(url or "")
    if search_match:
        query = unquote_plus(search_match.group(1)).strip()
        if query and not _COORDS_ONLY.match(query):
            return query

    query_match = _QUERY_TEXT.search(url or "")
    if query_match:
        query = unquote_plus(query_match.group(1)).strip()
        if query and not _COORDS_ONLY.match(query):
            return query

    return None
