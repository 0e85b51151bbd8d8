"""Chapter spoilers and the read-chapters viewability check."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.errors import BadRequestError, NotFoundError
from fansite.db.models import Chapter, ChapterSpoiler, Character, Event
from fansite.db.schemas import ChapterSpoilerCreate, ChapterSpoilerUpdate
from fansite.services.common import apply_fields, get_or_404, load_many
from fansite.services.pagination import PageParams, paginate

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "id": ChapterSpoiler.id,
    "minimumChapter": ChapterSpoiler.minimum_chapter,
    "level": ChapterSpoiler.level,
    "createdAt": ChapterSpoiler.created_at,
}

_RELATION_KEYS = ("additional_requirement_ids", "affected_character_ids")


def can_view(minimum_chapter: int | None, requirement_ids: list[int], read_chapter_ids: list[int]) -> bool:
    """A spoiler is viewable once its minimum chapter and every extra requirement are read."""
    read = set(read_chapter_ids)
    if minimum_chapter and minimum_chapter not in read:
        return False
    return all(req in read for req in requirement_ids)


class ChapterSpoilerService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(
        self,
        params: PageParams,
        level: str | None = None,
        category: str | None = None,
        chapter_id: int | None = None,
        is_verified: bool | None = None,
    ) -> dict:
        query = select(ChapterSpoiler)
        if level:
            query = query.where(ChapterSpoiler.level == level)
        if category:
            query = query.where(ChapterSpoiler.category == category)
        if chapter_id is not None:
            query = query.where(ChapterSpoiler.chapter_id == chapter_id)
        if is_verified is not None:
            query = query.where(ChapterSpoiler.is_verified == is_verified)
        return await paginate(self.db, query, params, SORT_FIELDS, default_sort=[ChapterSpoiler.id.asc()])

    async def get(self, spoiler_id: int) -> ChapterSpoiler:
        return await get_or_404(self.db, ChapterSpoiler, spoiler_id, "Chapter spoiler")

    async def create(self, payload: ChapterSpoilerCreate) -> ChapterSpoiler:
        if await self.db.get(Chapter, payload.chapter_id) is None:
            raise BadRequestError(f"Chapter with id {payload.chapter_id} does not exist")
        if await self.db.get(Event, payload.event_id) is None:
            raise BadRequestError(f"Event with id {payload.event_id} does not exist")

        spoiler = ChapterSpoiler()
        values = payload.model_dump()
        apply_fields(spoiler, {k: v for k, v in values.items() if k not in _RELATION_KEYS})
        spoiler.additional_requirements = await load_many(
            self.db, Chapter, payload.additional_requirement_ids, "Requirement chapter"
        )
        spoiler.affected_characters = await load_many(
            self.db, Character, payload.affected_character_ids, "Character"
        )
        self.db.add(spoiler)
        await self.db.commit()
        logger.info(f"Created chapter spoiler {spoiler.id} for event {spoiler.event_id}")
        return await self.get(spoiler.id)

    async def update(self, spoiler_id: int, payload: ChapterSpoilerUpdate) -> ChapterSpoiler:
        spoiler = await self.get(spoiler_id)
        values = payload.model_dump(exclude_unset=True)
        if values.get("additional_requirement_ids") is not None:
            spoiler.additional_requirements = await load_many(
                self.db, Chapter, values["additional_requirement_ids"], "Requirement chapter"
            )
        if values.get("affected_character_ids") is not None:
            spoiler.affected_characters = await load_many(
                self.db, Character, values["affected_character_ids"], "Character"
            )
        apply_fields(spoiler, {k: v for k, v in values.items() if k not in _RELATION_KEYS})
        await self.db.commit()
        return await self.get(spoiler_id)

    async def verify(self, spoiler_id: int) -> ChapterSpoiler:
        spoiler = await self.get(spoiler_id)
        spoiler.is_verified = True
        await self.db.commit()
        return await self.get(spoiler_id)

    async def delete(self, spoiler_id: int) -> None:
        spoiler = await self.get(spoiler_id)
        await self.db.delete(spoiler)
        await self.db.commit()

    async def check_viewable(self, spoiler_id: int, read_chapter_ids: list[int]) -> bool:
        spoiler = await self.db.get(ChapterSpoiler, spoiler_id)
        if spoiler is None:
            raise NotFoundError("Chapter spoiler not found")
        return can_view(
            spoiler.minimum_chapter,
            [req.id for req in spoiler.additional_requirements],
            read_chapter_ids,
        )
