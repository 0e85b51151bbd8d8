"""Chapters, each reported together with the volume that contains it."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.errors import ConflictError, NotFoundError
from fansite.db.models import Chapter
from fansite.db.schemas import ChapterCreate, ChapterResponse, ChapterUpdate, VolumeResponse
from fansite.services.common import apply_fields, get_or_404
from fansite.services.pagination import PageParams, contains, paginate
from fansite.services.volume_service import VolumeService

logger = logging.getLogger(__name__)

SORT_FIELDS = {"id": Chapter.id, "number": Chapter.number, "title": Chapter.title}


class ChapterService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.volumes = VolumeService(db)

    async def with_volume(self, chapter: Chapter) -> ChapterResponse:
        volume = await self.volumes.find_by_chapter(chapter.number)
        return ChapterResponse.model_validate(chapter).model_copy(
            update={"volume": VolumeResponse.model_validate(volume) if volume else None}
        )

    async def list(self, params: PageParams, title: str | None = None, number: int | None = None) -> dict:
        query = select(Chapter)
        if title:
            query = query.where(contains(Chapter.title, title))
        if number is not None:
            query = query.where(Chapter.number == number)
        return await paginate(self.db, query, params, SORT_FIELDS, default_sort=[Chapter.number.asc()])

    async def get(self, chapter_id: int) -> Chapter:
        return await get_or_404(self.db, Chapter, chapter_id, "Chapter")

    async def get_by_number(self, number: int) -> Chapter:
        result = await self.db.execute(select(Chapter).where(Chapter.number == number))
        chapter = result.scalar_one_or_none()
        if chapter is None:
            raise NotFoundError(f"Chapter {number} not found")
        return chapter

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("A chapter with this number already exists")

    async def create(self, payload: ChapterCreate) -> Chapter:
        chapter = Chapter()
        apply_fields(chapter, payload.model_dump())
        self.db.add(chapter)
        await self._commit()
        return chapter

    async def update(self, chapter_id: int, payload: ChapterUpdate) -> Chapter:
        chapter = await self.get(chapter_id)
        apply_fields(chapter, payload.model_dump(exclude_unset=True))
        await self._commit()
        return await self.get(chapter_id)

    async def delete(self, chapter_id: int) -> None:
        chapter = await self.get(chapter_id)
        await self.db.delete(chapter)
        await self.db.commit()
