"""AI writer parsing and generation flows."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from pocketrot.config import Settings
from pocketrot.errors import MalformedResponse
from pocketrot.services import ai_writer
from pocketrot.services.ai_writer import _extract_json_text, parse_character, parse_scenario

ROSTER = [
    SimpleNamespace(id=1, name="Mossback", species="Turtle", pocket_artifact="Cap",
                    role_and_vibe="Elder.", backstory=None),
    SimpleNamespace(id=2, name="Pip", species="Mouse", pocket_artifact="USB",
                    role_and_vibe="Hacker.", backstory=None),
]


class RosterSession:
    async def execute(self, stmt):
        return SimpleNamespace(scalars=lambda: SimpleNamespace(all=lambda: ROSTER))


@pytest.mark.parametrize(
    "raw",
    [
        '```json\n{"a": 1}\n```',
        '```\n{"a": 1}```',
        '  {"a": 1}  ',
        'Sure! Here it is: {"a": 1} Enjoy.',
    ],
)
def test_extract_json_text(raw) -> None:
    assert _extract_json_text(raw) == '{"a": 1}'


def test_parse_character_maps_camel_case_fields() -> None:
    character = parse_character({
        "name": " Dusty ",
        "species": "Hamster",
        "pocketArtifact": "Paperclip",
        "roleAndVibe": "Radio operator.",
    })

    assert character == {
        "name": "Dusty",
        "species": "Hamster",
        "pocket_artifact": "Paperclip",
        "role_and_vibe": "Radio operator.",
        "backstory": None,
    }


def test_parse_character_rejects_missing_fields() -> None:
    with pytest.raises(MalformedResponse, match="pocketArtifact, roleAndVibe"):
        parse_character({"name": "Dusty", "species": "Hamster", "pocketArtifact": "  "})


def test_parse_scenario_maps_names_to_ids() -> None:
    scenario = parse_scenario(
        {
            "title": "Heist",
            "description": "A fry.",
            "characterNames": ["Pip", "Nobody", "Mossback"],
            "location": "Under a seat",
        },
        {"Mossback": 1, "Pip": 2},
    )

    assert scenario["character_ids"] == [2, 1]
    assert scenario["location"] == "Under a seat"
    assert scenario["mission"] is None


def test_parse_scenario_with_no_matches_keeps_empty_cast() -> None:
    scenario = parse_scenario({"title": "T", "description": "D", "characterNames": ["Ghost"]}, {"Pip": 2})

    assert scenario["character_ids"] == []


@pytest.mark.parametrize(
    "data",
    [
        {"title": "T", "description": "D"},
        {"title": "T", "description": "D", "characterNames": "Pip"},
        {"title": "", "description": "D", "characterNames": []},
    ],
)
def test_parse_scenario_rejects_malformed(data) -> None:
    with pytest.raises(MalformedResponse):
        parse_scenario(data, {})


def test_generate_character_parses_llm_output(monkeypatch) -> None:
    prompts = []

    async def fake_llm_call(prompt, **kwargs):
        prompts.append((prompt, kwargs))
        return '```json\n{"name": "Dusty", "species": "Hamster", "pocketArtifact": "Clip", "roleAndVibe": "Odd."}\n```'

    async def fake_prompt(db):
        return "character prompt"

    monkeypatch.setattr(ai_writer, "settings", Settings(USE_MOCK_API=False))
    monkeypatch.setattr(ai_writer, "llm_call", fake_llm_call)
    monkeypatch.setattr(ai_writer.prompt_builder, "build_character_writer_prompt", fake_prompt)

    character = asyncio.run(ai_writer.generate_character(db=None))

    assert character["name"] == "Dusty"
    assert prompts[0][0] == "character prompt"
    assert prompts[0][1]["json_mode"] is True


def test_generate_character_invalid_json_is_malformed(monkeypatch) -> None:
    async def fake_llm_call(prompt, **kwargs):
        return "I cannot do that"

    async def fake_prompt(db):
        return "character prompt"

    monkeypatch.setattr(ai_writer, "settings", Settings(USE_MOCK_API=False))
    monkeypatch.setattr(ai_writer, "llm_call", fake_llm_call)
    monkeypatch.setattr(ai_writer.prompt_builder, "build_character_writer_prompt", fake_prompt)

    with pytest.raises(MalformedResponse):
        asyncio.run(ai_writer.generate_character(db=None))


def test_mock_scenario_uses_roster(monkeypatch) -> None:
    monkeypatch.setattr(ai_writer, "settings", Settings(USE_MOCK_API=True))

    scenario = asyncio.run(ai_writer.generate_scenario(RosterSession()))

    assert scenario["title"] == "The Great Crumb Heist"
    assert scenario["character_ids"] == [1, 2]
