"""Prompt assembly for the AI writer and the media generators.

Pulls lore and roster rows from the database and fills the text templates
under ``pocketrot/prompts/templates``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pocketrot.models import Character, Lore, Scenario
from pocketrot.prompts.manager import PromptManager

TAGLINE = "Small Scale. Big Glitch. Pure Rot."

LORE_SECTIONS = (
    ("origin", "THE ORIGIN"),
    ("physics", "THE PHYSICS OF ROT"),
    ("aesthetic", "VIDEO AESTHETIC GUIDELINES"),
)


def format_lore_context(entries: Iterable[Lore]) -> str:
    """Render lore rows as markdown, grouped by known category."""
    by_category: dict[str, list[Lore]] = {}
    for entry in entries:
        by_category.setdefault(entry.category, []).append(entry)

    lines = ["# PocketRot Universe - Core Lore", "", f"**Tagline:** {TAGLINE}", ""]
    for category, heading in LORE_SECTIONS:
        rows = sorted(by_category.get(category, []), key=lambda e: e.sort_order)
        if not rows:
            continue
        lines += [f"## {heading}", ""]
        for entry in rows:
            lines += [f"**{entry.title}:** {entry.content}", ""]
    return "\n".join(lines)


def format_characters_context(characters: Iterable[Character]) -> str:
    lines = ["## Existing Characters", ""]
    for char in characters:
        lines.append(f"- **{char.name}** ({char.species})")
        lines.append(f"  - Pocket Artifact: {char.pocket_artifact}")
        lines.append(f"  - Role: {char.role_and_vibe}")
        if char.backstory:
            lines.append(f"  - Backstory: {char.backstory}")
        lines.append("")
    return "\n".join(lines)


def format_roster(characters: Iterable[Character]) -> str:
    return "\n".join(f"- {c.name} ({c.species}) - {c.role_and_vibe}" for c in characters)


def _cast_line(characters: Sequence[Character]) -> str:
    return ", ".join(f"{c.name} ({c.species}) - {c.role_and_vibe}" for c in characters)


async def load_lore(db: AsyncSession) -> list[Lore]:
    result = await db.execute(select(Lore).order_by(Lore.category, Lore.sort_order))
    return list(result.scalars().all())


async def load_characters(db: AsyncSession, ids: Sequence[int] | None = None) -> list[Character]:
    stmt = select(Character).order_by(Character.id)
    if ids is not None:
        if not ids:
            return []
        stmt = stmt.where(Character.id.in_(list(ids)))
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def build_character_writer_prompt(db: AsyncSession) -> str:
    lore = format_lore_context(await load_lore(db))
    roster = format_characters_context(await load_characters(db))
    return f"{lore}\n{roster}\n\n{PromptManager.render('character_writer')}"


async def build_scenario_writer_prompt(db: AsyncSession, characters: Sequence[Character]) -> str:
    lore = format_lore_context(await load_lore(db))
    body = PromptManager.render("scenario_writer", roster=format_roster(characters))
    return f"{lore}\n{format_characters_context(characters)}\n\n{body}"


def build_scenario_image_prompt(scenario: Scenario, cast: Sequence[Character]) -> str:
    return PromptManager.render(
        "scenario_image",
        title=scenario.title,
        location=scenario.location or "",
        mission=scenario.mission or "",
        cast=_cast_line(cast),
        description=scenario.description,
    )


def build_scenario_video_prompt(
    scenario: Scenario, cast: Sequence[Character], duration: int = 8,
) -> str:
    return PromptManager.render(
        "scenario_video",
        duration=duration,
        title=scenario.title,
        location=scenario.location or "",
        mission=scenario.mission or "",
        cast=_cast_line(cast),
        description=scenario.description,
    )


def build_character_image_prompt(character: Character) -> str:
    backstory_line = f"\nBackstory: {character.backstory}" if character.backstory else ""
    return PromptManager.render(
        "character_image",
        name=character.name,
        species=character.species,
        pocket_artifact=character.pocket_artifact,
        role_and_vibe=character.role_and_vibe,
        backstory_line=backstory_line,
    )
