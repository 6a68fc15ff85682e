from __future__ import annotations
"""AI Writer service: invents new characters and scenarios.

Prompts carry the lore and the current roster so Gemini stays inside the
PocketRot universe. In mock mode, returns canned responses for testing.
"""

import json
import logging
import re
from typing import Any

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from pocketrot.config import get_settings
from pocketrot.errors import MalformedResponse
from pocketrot.services import prompt_builder
from pocketrot.services.llm_client import llm_call

logger = logging.getLogger(__name__)
settings = get_settings()

CHARACTER_FIELDS = {
    "name": "name",
    "species": "species",
    "pocketArtifact": "pocket_artifact",
    "roleAndVibe": "role_and_vibe",
}


async def generate_character(
    db: AsyncSession, http_client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Write a brand-new character that doesn't duplicate the roster.

    Returns:
        Dict with name, species, pocket_artifact, role_and_vibe, backstory.
    """
    if settings.USE_MOCK_API:
        return _mock_character()

    prompt = await prompt_builder.build_character_writer_prompt(db)
    text = await llm_call(prompt, http_client=http_client, json_mode=True, caller="character_writer")
    data = _parse_json_object(text, "character")
    return parse_character(data)


def parse_character(data: dict[str, Any]) -> dict[str, Any]:
    missing = [key for key in CHARACTER_FIELDS if not str(data.get(key) or "").strip()]
    if missing:
        raise MalformedResponse(
            f"Gemini character is missing fields: {', '.join(missing)}", provider="gemini-text",
        )
    character = {column: str(data[key]).strip() for key, column in CHARACTER_FIELDS.items()}
    character["backstory"] = (str(data.get("backstory") or "").strip()) or None
    return character


async def generate_scenario(
    db: AsyncSession, http_client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Write a scenario starring 2-4 existing characters.

    Character names in the model output are mapped back to ids; names that
    match nobody are dropped with a warning.

    Returns:
        Dict with title, description, character_ids, location, mission.
    """
    characters = await prompt_builder.load_characters(db)

    if settings.USE_MOCK_API:
        data = _mock_scenario([c.name for c in characters])
    else:
        prompt = await prompt_builder.build_scenario_writer_prompt(db, characters)
        text = await llm_call(prompt, http_client=http_client, json_mode=True, caller="scenario_writer")
        data = _parse_json_object(text, "scenario")

    return parse_scenario(data, {c.name: c.id for c in characters})


def parse_scenario(data: dict[str, Any], ids_by_name: dict[str, int]) -> dict[str, Any]:
    names = data.get("characterNames")
    if not isinstance(names, list):
        raise MalformedResponse(
            "Gemini response missing or invalid characterNames array", provider="gemini-text",
        )
    if not str(data.get("title") or "").strip() or not str(data.get("description") or "").strip():
        raise MalformedResponse("Gemini scenario is missing title or description", provider="gemini-text")

    character_ids = [ids_by_name[n] for n in names if n in ids_by_name]
    if not character_ids:
        logger.warning("No matching characters found for: %s", names)

    return {
        "title": str(data["title"]).strip(),
        "description": str(data["description"]).strip(),
        "character_ids": character_ids,
        "location": data.get("location"),
        "mission": data.get("mission"),
    }


def _parse_json_object(text: str, what: str) -> dict[str, Any]:
    json_text = _extract_json_text(text)
    try:
        data = json.loads(json_text)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse %s JSON: %s\nRaw: %s", what, e, text[:500])
        raise MalformedResponse(f"AI returned invalid JSON for {what}: {e}", provider="gemini-text")
    if not isinstance(data, dict):
        raise MalformedResponse(
            f"Expected a JSON object for {what}, got {type(data).__name__}", provider="gemini-text",
        )
    return data


def _extract_json_text(text: str) -> str:
    """Extract JSON from text that may be wrapped in markdown code fences.

    Handles: ```json ... ```, ``` ... ```, and bare JSON.
    """
    fence_match = re.search(r"```(?:json)?\s*\n?(.*?)```", text, re.DOTALL)
    if fence_match:
        return fence_match.group(1).strip()

    stripped = text.strip()
    if stripped.startswith(("{", "[")):
        return stripped

    # Last resort: outermost braces
    first = stripped.find("{")
    last = stripped.rfind("}")
    if first != -1 and last > first:
        return stripped[first : last + 1]
    return stripped


# ---------------------------------------------------------------------------
# Mock implementations (used with USE_MOCK_API=True)
# ---------------------------------------------------------------------------

def _mock_character() -> dict[str, Any]:
    return {
        "name": "Dusty Rusty-Trusty",
        "species": "Hamster",
        "pocket_artifact": "A bent paperclip antenna",
        "role_and_vibe": "The paranoid radio operator who hears dial-up tones in the walls.",
        "backstory": (
            "Dusty fell asleep inside a CRT monitor during a thunderstorm. "
            "He woke up 4.20 inches tall with a faint 56k modem hum in his ears."
        ),
    }


def _mock_scenario(names: list[str]) -> dict[str, Any]:
    return {
        "title": "The Great Crumb Heist",
        "characterNames": names[:2],
        "location": "Under the driver's seat of a 2004 minivan",
        "mission": "Retrieve a single fossilized french fry",
        "description": (
            "The crew rappels down a seatbelt strap into the dark canyon beneath the seat. "
            "Loose change drifts upward in a physics glitch while a forgotten receipt "
            "scrolls like a corrupted error dialog. The fry is guarded by a colossal "
            "dust bunny. Nobody blinks. This is the most important mission of their lives."
        ),
    }
