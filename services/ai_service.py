import httpx
import json
from typing import List, Optional

from loguru import logger
from pydantic import ValidationError

from core.config import settings
from core.exceptions import VibeRefreshError
from schemas.ai_schema import AnalyzeRequest, ExistingNote, VibeAnalysis
from schemas.place_schema import Review

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models"
MAX_REVIEWS = 10

VIBE_TAG_SUGGESTIONS = [
    "romantic", "cozy", "adventurous", "peaceful", "scenic", "hidden-gem",
    "sunset-spot", "coffee-worthy", "food-coma", "nature", "waterfront",
    "historic", "artsy", "local-favorite", "instagram-worthy",
    "conversation-starter", "date-night", "morning-vibes", "golden-hour",
    "stargazing", "walking-friendly", "animal-friendly", "rain-or-shine",
    "spontaneous", "bucket-list",
]


async def generate_text_with_gemini(prompt: str, model: Optional[str] = None, max_tokens: int = 2048) -> str:
    """
    Generic function to generate text using the Gemini API.
    """
    api_key = settings.GEMINI_API_KEY
    if not api_key:
        raise ValueError("Gemini API key is not configured.")

    model = model or settings.GEMINI_MODEL
    body = {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": {"maxOutputTokens": max_tokens, "temperature": 0.7},
    }

    async with httpx.AsyncClient() as client:
        try:
            logger.info(f"Sending request to Gemini with model: {model}")
            response = await client.post(
                f"{GEMINI_API_URL}/{model}:generateContent",
                params={"key": api_key},
                json=body,
                timeout=60.0,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error from Gemini: {e.response.status_code} - {e.response.text[:500]}")
            raise Exception(f"Error from Gemini: {e.response.status_code}")
        except httpx.RequestError as e:
            logger.error(f"Request error to Gemini: {e}")
            raise Exception(f"Failed to connect to Gemini: {e}")
        except json.JSONDecodeError as e:
            logger.error(f"Gemini returned a non-JSON body: {e}")
            raise Exception(f"Gemini returned invalid JSON response: {e}")

    try:
        parts = data["candidates"][0]["content"]["parts"]
        return "".join(part.get("text", "") for part in parts)
    except (KeyError, IndexError, TypeError):
        logger.error(f"Unexpected response structure from Gemini: {str(data)[:500]}")
        raise Exception("Gemini returned an unexpected response structure")


def parse_vibe_response(text: str) -> VibeAnalysis:
    """
    Best-effort decode of the model's answer.

    The answer is free text that should hold one JSON object, possibly wrapped in
    a markdown fence. The span from the first '{' to the last '}' is parsed and
    validated; fields that are missing or the wrong shape come back empty.
    """
    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end <= start:
        raise ValueError("No JSON found in response")

    data = json.loads(text[start:end + 1])
    if not isinstance(data, dict):
        raise ValueError("Response JSON is not an object")
    return VibeAnalysis.model_validate(data)


def placeholder_vibe(place_name: str, editorial_summary: Optional[str] = None) -> VibeAnalysis:
    """Fixed content used when Gemini is not configured or the first analysis fails."""
    return VibeAnalysis(
        summary=f"{place_name} awaits your discovery. Add notes after your visit to build your personal story of this place.",
        couple_insights="This could be your next adventure together. Visit and let us know what you think!",
        vibe_tags=["to-explore", "awaiting-discovery"],
        poetic_description="A place yet to be written into your story.",
        general_description=editorial_summary
        or f"{place_name} is a place waiting to be discovered. Explore it together and create your own memories here.",
    )


def _format_reviews(reviews: List[Review]) -> str:
    return "\n\n".join(
        f"[{review.rating:g}★] {review.text}" if review.rating is not None else review.text
        for review in reviews[:MAX_REVIEWS]
    )


def _format_notes(notes: List[ExistingNote]) -> str:
    return "\n\n".join(f"[{note.author.value}] {note.content}" for note in notes)


def build_analysis_prompt(
    place_name: str,
    place_types: List[str],
    reviews: List[Review],
    editorial_summary: Optional[str] = None,
) -> str:
    editorial = f"\nGoogle's Description: {editorial_summary}\n" if editorial_summary else ""
    return f"""
    You are helping a couple (Khaled and Amal) discover meaningful places together. Analyze this place and provide insights specifically for a couple exploring the world together.

    Place: {place_name}
    Type: {", ".join(place_types)}
    {editorial}
    Reviews:
    {_format_reviews(reviews) or "No reviews available"}

    Your response MUST be a JSON object with exactly these keys:
    {{
      "generalDescription": "A rich, informative 3-4 sentence description of this place. Cover what it is, what makes it notable, what you can see/do/experience there. Include any historical, cultural, or practical context. Be specific and vivid.",
      "summary": "A concise 2-3 sentence summary of what makes this place special. Focus on atmosphere, unique qualities, and memorable experiences.",
      "coupleInsights": "2-3 sentences specifically for a couple. Consider romantic potential, shared experiences, conversation opportunities, photo moments, or just the vibe of being there together.",
      "vibeTags": ["list", "of", "5-8", "vibe", "tags"],
      "poeticDescription": "One evocative, poetic sentence that captures the essence of this place. Make it feel like a memory waiting to happen."
    }}

    For vibeTags, choose from or create tags like: {", ".join(VIBE_TAG_SUGGESTIONS)}

    Be genuine and specific. Avoid generic descriptions. Write as if you're a thoughtful friend who knows them.
    """


def build_refresh_prompt(
    place_name: str,
    place_types: List[str],
    reviews: List[Review],
    existing_notes: List[ExistingNote],
    editorial_summary: Optional[str] = None,
) -> str:
    editorial = f"\nGoogle's Description: {editorial_summary}\n" if editorial_summary else ""
    return f"""
    You are helping Khaled and Amal document their journey together. They've already visited or are planning to visit this place. Analyze it with their personal notes in mind.

    Place: {place_name}
    Type: {", ".join(place_types)}
    {editorial}
    Reviews from others:
    {_format_reviews(reviews) or "No reviews available"}

    Their personal notes:
    {_format_notes(existing_notes) or "No notes yet"}

    Your response MUST be a JSON object with exactly these keys:
    {{
      "generalDescription": "A rich, informative 3-4 sentence description of this place. Cover what it is, what makes it notable, what you can see/do/experience there.",
      "summary": "A concise 2-3 sentence summary. If they have notes, weave in their personal experience. Otherwise, focus on what makes this place special.",
      "coupleInsights": "2-3 sentences for them as a couple. Reference their notes if available. Suggest what to try or remember about this place.",
      "vibeTags": ["list", "of", "5-8", "vibe", "tags"],
      "poeticDescription": "One evocative, poetic sentence. If they have notes, make it feel like a memory they're building together."
    }}

    For vibeTags, choose from or create tags like: {", ".join(VIBE_TAG_SUGGESTIONS)}

    Make it personal. This is their private memory journal.
    """


async def analyze_place(
    place_name: str,
    place_types: List[str],
    reviews: List[Review],
    editorial_summary: Optional[str] = None,
) -> VibeAnalysis:
    """
    First-time vibe for a newly added place.
    Never fails: any provider or parsing error yields the placeholder vibe.
    """
    if not settings.GEMINI_API_KEY:
        return placeholder_vibe(place_name, editorial_summary)

    prompt = build_analysis_prompt(place_name, place_types, reviews, editorial_summary)
    try:
        generated_content = await generate_text_with_gemini(prompt)
        return parse_vibe_response(generated_content)
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"Failed to decode vibe for '{place_name}', using placeholders: {e}")
    except Exception as e:
        logger.warning(f"Error analyzing '{place_name}' with Gemini, using placeholders: {e}")
    return placeholder_vibe(place_name, editorial_summary)


async def refresh_place_vibe(
    place_name: str,
    place_types: List[str],
    reviews: List[Review],
    existing_notes: List[ExistingNote],
    editorial_summary: Optional[str] = None,
) -> VibeAnalysis:
    """
    Re-derives the vibe with the couple's own notes in the prompt.
    Failures raise ``VibeRefreshError`` so good content is never replaced by placeholders.
    """
    if not settings.GEMINI_API_KEY:
        return placeholder_vibe(place_name, editorial_summary)

    prompt = build_refresh_prompt(place_name, place_types, reviews, existing_notes, editorial_summary)
    try:
        generated_content = await generate_text_with_gemini(prompt)
        return parse_vibe_response(generated_content)
    except Exception as e:
        logger.error(f"Error refreshing vibe for '{place_name}': {e}")
        raise VibeRefreshError(f"Failed to refresh vibe for '{place_name}'") from e


async def annotate(request: AnalyzeRequest) -> VibeAnalysis:
    """Entry point for the analyze endpoint: picks the initial or refresh path."""
    place_types = request.place_types or []
    reviews = request.reviews or []

    if request.is_refresh:
        return await refresh_place_vibe(
            request.place_name,
            place_types,
            reviews,
            request.existing_notes or [],
            request.editorial_summary,
        )
    return await analyze_place(request.place_name, place_types, reviews, request.editorial_summary)
