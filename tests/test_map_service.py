import asyncio

import httpx
import pytest

from core.config import settings
from core.exceptions import NotFoundError
from services import map_service

RAOUCHE_DETAILS = {
    "status": "OK",
    "result": {
        "place_id": "ChIJ2bO9V2cXHxURpnt0iDXu1xM",
        "name": "Raouche Rocks",
        "formatted_address": "Corniche, Beirut, Lebanon",
        "geometry": {"location": {"lat": 33.8869, "lng": 35.4697}},
        "rating": 4.7,
        "types": ["natural_feature", "tourist_attraction"],
        "reviews": [{"text": "Unreal at sunset.", "rating": 5, "author_name": "Rana"}],
        "photos": [{"photo_reference": f"ref{i}"} for i in range(8)],
        "editorial_summary": {"overview": "Iconic sea stacks off the Beirut corniche."},
    },
}


def _resolve(raw, handler):
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await map_service.resolve_place(raw, client=client)

    return asyncio.run(run())


@pytest.fixture
def maps_key(monkeypatch):
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "test-maps-key")


def test_identifier_lookup_returns_details(maps_key):
    seen = []

    def handler(request):
        seen.append(request)
        assert request.url.path == "/maps/api/place/details/json"
        assert request.url.params["place_id"] == "0x151f17:0x8f8e1b"
        return httpx.Response(200, json=RAOUCHE_DETAILS)

    place = _resolve("https://www.google.com/maps/place/Raouche/data=!1s0x151f17:0x8f8e1b", handler)

    assert len(seen) == 1
    assert place.name == "Raouche Rocks"
    assert place.latitude == 33.8869
    assert place.editorial_summary == "Iconic sea stacks off the Beirut corniche."
    assert place.reviews[0].author_name == "Rana"
    assert len(place.photo_urls) == map_service.MAX_PHOTOS
    assert "photo_reference=ref0" in place.photo_urls[0]


def test_numeric_identifier_is_sent_as_cid(maps_key):
    def handler(request):
        assert request.url.params["cid"] == "1234567890"
        assert "place_id" not in request.url.params
        return httpx.Response(200, json=RAOUCHE_DETAILS)

    place = _resolve("https://maps.google.com/?cid=1234567890", handler)
    assert place.place_id == "ChIJ2bO9V2cXHxURpnt0iDXu1xM"


def test_identifier_miss_without_name_or_coordinates_is_not_found(maps_key):
    def handler(request):
        return httpx.Response(200, json={"status": "NOT_FOUND"})

    with pytest.raises(NotFoundError):
        _resolve("https://maps.google.com/?cid=1234567890", handler)


def test_name_only_link_searches_then_fetches_details(maps_key):
    paths = []

    def handler(request):
        paths.append(request.url.path)
        if request.url.path.endswith("textsearch/json"):
            assert request.url.params["query"] == "Raouche Rocks"
            assert "location" not in request.url.params
            return httpx.Response(200, json={"status": "OK", "results": [{"place_id": "ChIJ2bO9V2cXHxURpnt0iDXu1xM"}]})
        assert request.url.params["place_id"] == "ChIJ2bO9V2cXHxURpnt0iDXu1xM"
        return httpx.Response(200, json=RAOUCHE_DETAILS)

    place = _resolve("https://www.google.com/maps/place/Raouche+Rocks", handler)

    assert paths == ["/maps/api/place/textsearch/json", "/maps/api/place/details/json"]
    assert place.name == "Raouche Rocks"


def test_search_is_biased_toward_link_coordinates(maps_key):
    def handler(request):
        if request.url.path.endswith("textsearch/json"):
            assert request.url.params["location"] == "33.8869,35.4697"
            assert request.url.params["radius"] == str(map_service.SEARCH_RADIUS_METERS)
            return httpx.Response(200, json={"status": "OK", "results": [{"place_id": "abc"}]})
        return httpx.Response(200, json=RAOUCHE_DETAILS)

    place = _resolve("https://www.google.com/maps/place/Raouche+Rocks/@33.8869,35.4697,14z", handler)
    assert place.name == "Raouche Rocks"


def test_coordinates_only_falls_back_to_reverse_geocoding(maps_key):
    def handler(request):
        assert request.url.path == "/maps/api/geocode/json"
        assert request.url.params["latlng"] == "33.8962,35.483"
        return httpx.Response(200, json={
            "status": "OK",
            "results": [{"formatted_address": "Hamra Street, Beirut, Lebanon", "place_id": "geo1", "types": ["route"]}],
        })

    place = _resolve("https://www.google.com/maps/@33.8962,35.483,17z", handler)

    assert place.name == "Hamra Street"
    assert place.address == "Hamra Street, Beirut, Lebanon"
    assert (place.latitude, place.longitude) == (33.8962, 35.483)
    assert place.reviews == []
    assert place.photo_urls == []


def test_provider_errors_fall_through_to_next_step(maps_key):
    def handler(request):
        if request.url.path.endswith("details/json"):
            return httpx.Response(500, text="backend error")
        return httpx.Response(200, json={
            "status": "OK",
            "results": [{"formatted_address": "Jeita, Lebanon"}],
        })

    place = _resolve("https://www.google.com/maps/@33.9425,35.6381,15z/data=!1s0xaaa:0xbbb", handler)
    assert place.name == "Jeita"


def test_plain_text_is_searched_by_name(maps_key):
    def handler(request):
        if request.url.path.endswith("textsearch/json"):
            assert request.url.params["query"] == "Jeita Grotto"
            return httpx.Response(200, json={"status": "OK", "results": [{"place_id": "abc"}]})
        return httpx.Response(200, json=RAOUCHE_DETAILS)

    assert _resolve("Jeita Grotto", handler).name == "Raouche Rocks"


def test_short_link_is_expanded_before_parsing(maps_key):
    long_url = "https://www.google.com/maps/@33.8962,35.483,17z"

    def handler(request):
        if request.url.host == "maps.app.goo.gl":
            return httpx.Response(302, headers={"Location": long_url})
        if request.url.host == "www.google.com":
            return httpx.Response(200)
        return httpx.Response(200, json={"status": "OK", "results": [{"formatted_address": "Hamra, Beirut"}]})

    place = _resolve("https://maps.app.goo.gl/AbCdEf123", handler)
    assert place.name == "Hamra"
    assert place.latitude == 33.8962


def test_short_link_failure_keeps_original_link():
    def handler(request):
        raise httpx.ConnectError("network down", request=request)

    # No Maps key: the demo place is still produced from the unexpanded link
    place = _resolve("https://maps.app.goo.gl/AbCdEf123", handler)
    assert place.place_id.startswith("mock_")


def test_demo_place_without_maps_key_keeps_parsed_details():
    def handler(request):
        raise AssertionError("no provider calls expected")

    url = "https://www.google.com/maps/place/Mar+Mikhael+Stairs/@33.8959,35.5236,18z"
    place = _resolve(url, handler)

    assert place.name == "Mar Mikhael Stairs"
    assert (place.latitude, place.longitude) == (33.8959, 35.5236)
    assert place.place_id.startswith("mock_")
    assert place.reviews


def test_demo_place_is_stable_for_the_same_link():
    url = "https://maps.google.com/?cid=42"
    first = _resolve(url, lambda request: httpx.Response(500))
    second = _resolve(url, lambda request: httpx.Response(500))
    assert first.name == second.name
    assert first.name in {mock["name"] for mock in map_service.MOCK_PLACES}


@pytest.mark.parametrize("raw", ["", "   ", "https://example.com/some/page"])
def test_invalid_input_is_rejected(raw):
    with pytest.raises(ValueError):
        _resolve(raw, lambda request: httpx.Response(500))


def test_schemeless_link_is_parsed_as_a_link():
    def handler(request):
        raise AssertionError("no provider calls expected")

    place = _resolve("www.google.com/maps/place/Raouche+Rocks/@33.8869,35.4697,14z", handler)

    assert place.name == "Raouche Rocks"
    assert (place.latitude, place.longitude) == (33.8869, 35.4697)


def test_schemeless_short_link_is_expanded(maps_key):
    long_url = "https://www.google.com/maps/@33.8962,35.483,17z"
    paths = []

    def handler(request):
        paths.append(request.url.path)
        if request.url.host == "maps.app.goo.gl":
            return httpx.Response(302, headers={"Location": long_url})
        if request.url.host == "www.google.com":
            return httpx.Response(200)
        return httpx.Response(200, json={"status": "OK", "results": [{"formatted_address": "Hamra, Beirut"}]})

    place = _resolve("maps.app.goo.gl/AbCdEf123", handler)

    assert "/maps/api/place/textsearch/json" not in paths
    assert place.name == "Hamra"
