from __future__ import annotations
"""Generation record repository.

``record_outcome`` is the only code path that inserts image or video rows,
so every terminal generation result goes through one place.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pocketrot.errors import NotFoundError
from pocketrot.models import Character, Image, Scenario, Video
from pocketrot.services.jobs import MediaKind, SubjectRef, SubjectType

logger = logging.getLogger(__name__)

_SUBJECT_MODELS = {
    SubjectType.SCENARIO: Scenario,
    SubjectType.CHARACTER: Character,
}


class GenerationRecordRepository:
    """Subject lookups and record inserts over one async session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_subject(self, subject: SubjectRef) -> Scenario | Character:
        model = _SUBJECT_MODELS[subject.type]
        row = await self.session.get(model, subject.id)
        if row is None:
            raise NotFoundError(f"{subject.type.value.capitalize()} {subject.id} not found")
        return row

    async def record_outcome(
        self,
        subject: SubjectRef,
        url: str,
        prompt_text: str,
        generated_by: str,
        approved: bool = False,
        *,
        media: MediaKind = MediaKind.IMAGE,
        duration: int | None = None,
    ) -> Image | Video:
        """Insert one generation record and return it."""
        if media is MediaKind.VIDEO:
            if subject.type is not SubjectType.SCENARIO:
                raise ValueError("Videos can only be recorded for scenarios")
            record: Image | Video = Video(
                scenario_id=subject.id,
                url=url,
                prompt=prompt_text,
                generated_by=generated_by,
                duration=duration,
            )
        else:
            record = Image(
                scenario_id=subject.id if subject.type is SubjectType.SCENARIO else None,
                character_id=subject.id if subject.type is SubjectType.CHARACTER else None,
                url=url,
                prompt=prompt_text,
                generated_by=generated_by,
                approved=approved,
            )

        self.session.add(record)
        await self.session.flush()
        await self.session.refresh(record)
        logger.info(
            "%s record %s created for %s (generated_by=%s)",
            media.value, record.id, subject.label, generated_by,
        )
        return record

    async def latest_image(self, subject: SubjectRef) -> Image | None:
        """Most recent image for the subject, or None."""
        column = Image.scenario_id if subject.type is SubjectType.SCENARIO else Image.character_id
        result = await self.session.execute(
            select(Image)
            .where(column == subject.id)
            .order_by(Image.created_at.desc(), Image.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def get_image(self, image_id: int) -> Image | None:
        return await self.session.get(Image, image_id)
