import asyncio
import json
from unittest.mock import patch

import pytest

from core.config import settings
from core.exceptions import VibeRefreshError
from schemas.ai_schema import AnalyzeRequest, ExistingNote
from schemas.place_schema import Review
from services import ai_service

GOOD_ANSWER = json.dumps({
    "summary": "A cliffside perch where Beirut meets the sea.",
    "coupleInsights": "Walk the corniche at dusk and share a ka'ak.",
    "vibeTags": ["sunset-spot", "waterfront", "romantic"],
    "poeticDescription": "Two stones holding the horizon still for you.",
    "generalDescription": "Raouche Rocks are two limestone sea stacks off west Beirut.",
})


@pytest.fixture
def gemini_key(monkeypatch):
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "test-gemini-key")


def test_placeholder_without_key_names_the_place():
    result = asyncio.run(ai_service.analyze_place("Jeita Grotto", ["natural_feature"], []))

    assert result.summary == (
        "Jeita Grotto awaits your discovery. Add notes after your visit "
        "to build your personal story of this place."
    )
    assert result.vibe_tags == ["to-explore", "awaiting-discovery"]
    assert result.general_description.startswith("Jeita Grotto is a place waiting to be discovered.")


def test_placeholder_uses_editorial_summary_when_present():
    result = ai_service.placeholder_vibe("Jeita Grotto", "Limestone caves north of Beirut.")
    assert result.general_description == "Limestone caves north of Beirut."


def test_refresh_without_key_also_returns_placeholders():
    result = asyncio.run(ai_service.refresh_place_vibe(
        "Byblos Old Souk", [], [], [ExistingNote(author="amal", content="Best ice cream ever")],
    ))
    assert "Byblos Old Souk" in result.summary


def test_initial_analysis_decodes_provider_answer(gemini_key):
    with patch.object(ai_service, "generate_text_with_gemini", return_value=GOOD_ANSWER) as generate:
        result = asyncio.run(ai_service.analyze_place(
            "Raouche Rocks", ["natural_feature"], [Review(text="Unreal at sunset.", rating=5)],
        ))

    prompt = generate.call_args.args[0]
    assert "Raouche Rocks" in prompt
    assert "[5★] Unreal at sunset." in prompt
    assert result.couple_insights == "Walk the corniche at dusk and share a ka'ak."
    assert result.vibe_tags == ["sunset-spot", "waterfront", "romantic"]


def test_initial_analysis_failure_yields_placeholders(gemini_key):
    with patch.object(ai_service, "generate_text_with_gemini", side_effect=Exception("Error from Gemini: 503")):
        result = asyncio.run(ai_service.analyze_place("Raouche Rocks", [], []))

    assert result.summary.startswith("Raouche Rocks awaits your discovery.")


def test_initial_analysis_with_unparseable_answer_yields_placeholders(gemini_key):
    with patch.object(ai_service, "generate_text_with_gemini", return_value="Sorry, I cannot help with that."):
        result = asyncio.run(ai_service.analyze_place("Raouche Rocks", [], []))

    assert result.vibe_tags == ["to-explore", "awaiting-discovery"]


def test_refresh_failure_raises_instead_of_placeholders(gemini_key):
    with patch.object(ai_service, "generate_text_with_gemini", side_effect=Exception("Error from Gemini: 503")):
        with pytest.raises(VibeRefreshError):
            asyncio.run(ai_service.refresh_place_vibe("Raouche Rocks", [], [], []))


def test_refresh_prompt_includes_couple_notes(gemini_key):
    notes = [
        ExistingNote(author="khaled", content="We got engaged here."),
        ExistingNote(author="amal", content="Bring a jacket, it gets windy."),
    ]
    with patch.object(ai_service, "generate_text_with_gemini", return_value=GOOD_ANSWER) as generate:
        asyncio.run(ai_service.refresh_place_vibe("Raouche Rocks", [], [], notes))

    prompt = generate.call_args.args[0]
    assert "[khaled] We got engaged here." in prompt
    assert "[amal] Bring a jacket, it gets windy." in prompt


def test_annotate_routes_refresh_requests(gemini_key):
    request = AnalyzeRequest(placeName="Raouche Rocks", isRefresh=True)
    with patch.object(ai_service, "generate_text_with_gemini", side_effect=Exception("boom")):
        with pytest.raises(VibeRefreshError):
            asyncio.run(ai_service.annotate(request))


def test_parse_fenced_answer():
    text = f"Here you go:\n```json\n{GOOD_ANSWER}\n```"
    result = ai_service.parse_vibe_response(text)
    assert result.summary == "A cliffside perch where Beirut meets the sea."


def test_parse_partial_answer_fills_defaults():
    result = ai_service.parse_vibe_response('{"summary": "Quiet and green.", "vibeTags": "nature"}')

    assert result.summary == "Quiet and green."
    assert result.vibe_tags == []
    assert result.couple_insights == ""
    assert result.poetic_description == ""
    assert result.general_description == ""


def test_parse_drops_non_text_tags():
    result = ai_service.parse_vibe_response('{"vibeTags": ["cozy", 3, null, " scenic "]}')
    assert result.vibe_tags == ["cozy", "scenic"]


def test_parse_without_json_raises():
    with pytest.raises(ValueError):
        ai_service.parse_vibe_response("no braces here")
