from __future__ import annotations
"""Prompt template manager: loads text templates from disk and fills them."""

import logging
from pathlib import Path
from typing import ClassVar

logger = logging.getLogger(__name__)

_TEMPLATES_DIR = Path(__file__).parent / "templates"


class PromptManager:
    """Load and cache prompt templates from the filesystem.

    Templates live at ``prompts/templates/{style}/{name}.txt``. A style that
    lacks a template falls back to ``default``.
    """

    _cache: ClassVar[dict[str, str]] = {}

    @classmethod
    def get_prompt(cls, template_name: str, style: str = "default") -> str:
        cache_key = f"{style}/{template_name}"
        if cache_key in cls._cache:
            return cls._cache[cache_key]

        path = _TEMPLATES_DIR / style / f"{template_name}.txt"
        if not path.exists() and style != "default":
            path = _TEMPLATES_DIR / "default" / f"{template_name}.txt"

        if not path.exists():
            logger.warning("Prompt template not found: %s/%s.txt", style, template_name)
            return ""

        text = path.read_text(encoding="utf-8").strip()
        cls._cache[cache_key] = text
        return text

    @classmethod
    def render(cls, template_name: str, style: str = "default", **values: object) -> str:
        """Fill a template with ``str.format`` placeholders.

        Raises ``KeyError`` when the template references a value that was
        not supplied, and ``LookupError`` when the template is missing.
        """
        template = cls.get_prompt(template_name, style)
        if not template:
            raise LookupError(f"Prompt template {style}/{template_name} is missing")
        return template.format(**values)

    @classmethod
    def reload(cls):
        cls._cache.clear()
        logger.info("Prompt template cache cleared.")

    @classmethod
    def list_templates(cls, style: str = "default") -> list[str]:
        style_dir = _TEMPLATES_DIR / style
        if not style_dir.exists():
            return []
        return sorted(f.stem for f in style_dir.glob("*.txt"))
