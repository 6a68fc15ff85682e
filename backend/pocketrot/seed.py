from __future__ import annotations
"""Seed the PocketRot universe: core lore plus the four original characters.

Usage (from ``backend/``)::

    python -m pocketrot.seed

Tables that already hold rows are left alone, so re-running is safe.
"""

import asyncio
import logging

from sqlalchemy import func, select

from pocketrot.database import async_session_factory, close_db, init_db
from pocketrot.models import Character, Lore

logger = logging.getLogger(__name__)

LORE = [
    {
        "title": "The 1:18 Scale Incident",
        "category": "origin",
        "sort_order": 1,
        "content": (
            "In 1998, a failing global toy conglomerate attempted to create the world's first "
            '"Living Action Figures" to save their stock price. They combined experimental '
            "bio-plastic molds with a leaked, corrupted version of a Windows 98 compression codec.\n\n"
            'The experiment was a catastrophic success. Instead of plastic toys, four real animals were "zipped" '
            "into a digital-physical hybrid state. They emerged exactly 4.20 inches tall, wearing permanent, "
            'unremovable "rendered" clothing, and possessed by the erratic logic of a corrupted hard drive.\n\n'
            'They exist in the "Gaps" of our world: the spaces behind radiators, under car seats, and along '
            "sidewalk cracks. To them, our discarded junk is sacred tech, and our suburban environments are "
            "high-stakes RPG levels."
        ),
    },
    {
        "title": "The Fixed Scale",
        "category": "physics",
        "sort_order": 1,
        "content": (
            "They are hard-coded at 4.20 inches. No matter how much they eat, they do not grow; "
            'they simply become more "dense" and heavy.'
        ),
    },
    {
        "title": "The Respawn",
        "category": "physics",
        "sort_order": 2,
        "content": (
            'If a character is "deleted" (trapped, squashed, or lost), they instantly pop back into '
            "existence inside Gort's hoodie with a low-res pixel effect."
        ),
    },
    {
        "title": "The Render-Skin",
        "category": "physics",
        "sort_order": 3,
        "content": 'Their clothes are part of their physical code. If an item is damaged, it "re-renders" overnight.',
    },
    {
        "title": "Pocket Artifacts",
        "category": "physics",
        "sort_order": 4,
        "content": (
            'Each character is magnetically drawn to a specific piece of "Pocket Rot": human debris '
            'that grants them perceived "powers" or status.'
        ),
    },
    {
        "title": "Camera Angle",
        "category": "aesthetic",
        "sort_order": 1,
        "content": (
            'Always at ground level. Humans should only be seen as "The Unrendered": giant, blurry '
            "boots or towering shadows."
        ),
    },
    {
        "title": "Sound Design",
        "category": "aesthetic",
        "sort_order": 2,
        "content": "A mix of nature sounds and digital artifacts (dial-up tones, static purring, microwave beeps).",
    },
    {
        "title": "The Logic",
        "category": "aesthetic",
        "sort_order": 3,
        "content": (
            'Every video should feature a "Mundane Mission" treated with world-ending seriousness '
            '(e.g., crossing a puddle, defending a discarded French fry, or "hacking" a TV remote).'
        ),
    },
]

ORIGINAL_CHARACTERS = [
    {
        "name": "Scraps Caps-Lock",
        "species": "Raccoon",
        "pocket_artifact": "Faded Receipt",
        "role_and_vibe": (
            'The Foreman. Wears the receipt as a cape. High-energy, speaks in "All Caps," and believes '
            "he is managing a massive, invisible construction project."
        ),
    },
    {
        "name": "Gort Short-Sport",
        "species": "Capybara",
        "pocket_artifact": "Linty Jellybean",
        "role_and_vibe": (
            'The Pilot. Carries the bean in a gum-wrapper fanny pack as a "Power Cell." Stoic, stares '
            "through the 4th wall, and drives the RC Monster Truck."
        ),
    },
    {
        "name": "Bubbles Rubbles",
        "species": "Axolotl",
        "pocket_artifact": "Tangled Earphones",
        "role_and_vibe": (
            "The Wildcard. Uses wires as a reality anchor. Clips through solid objects, moves at erratic "
            'frame rates, and is obsessed with "80s fitness."'
        ),
    },
    {
        "name": "Shelldon Swell-Don",
        "species": "Turtle",
        "pocket_artifact": "Shiny Penny",
        "role_and_vibe": (
            "The Don. His penny is mounted to his shell like a badge of office. He is the slow-moving "
            '"Authority" who enforces nonsensical sidewalk regulations.'
        ),
    },
]


async def seed() -> dict[str, int]:
    """Insert lore and original characters into empty tables. Returns rows added."""
    added = {"lore": 0, "characters": 0}
    async with async_session_factory() as session:
        if not await session.scalar(select(func.count()).select_from(Lore)):
            session.add_all(Lore(**entry) for entry in LORE)
            added["lore"] = len(LORE)
        else:
            logger.info("Lore already present, skipping")

        if not await session.scalar(select(func.count()).select_from(Character)):
            session.add_all(
                Character(**char, is_original=True, generated_by="manual")
                for char in ORIGINAL_CHARACTERS
            )
            added["characters"] = len(ORIGINAL_CHARACTERS)
        else:
            logger.info("Characters already present, skipping")

        await session.commit()
    return added


async def _main() -> None:
    await init_db()
    try:
        added = await seed()
    finally:
        await close_db()
    logger.info("Seeded %d lore entries and %d characters", added["lore"], added["characters"])


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    asyncio.run(_main())
