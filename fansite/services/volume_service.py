"""Volumes and the chapter ranges they cover."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.errors import BadRequestError, ConflictError, NotFoundError
from fansite.db.models import Chapter, Volume
from fansite.db.schemas import VolumeCreate, VolumeUpdate
from fansite.services.common import apply_fields, get_or_404
from fansite.services.pagination import PageParams, paginate

logger = logging.getLogger(__name__)

SORT_FIELDS = {"id": Volume.id, "number": Volume.number, "startChapter": Volume.start_chapter}


class VolumeService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self, params: PageParams) -> dict:
        return await paginate(self.db, select(Volume), params, SORT_FIELDS, default_sort=[Volume.number.asc()])

    async def get(self, volume_id: int) -> Volume:
        return await get_or_404(self.db, Volume, volume_id, "Volume")

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("A volume with this number already exists")

    async def create(self, payload: VolumeCreate) -> Volume:
        if payload.start_chapter > payload.end_chapter:
            raise BadRequestError("startChapter must not be greater than endChapter")
        volume = Volume()
        apply_fields(volume, payload.model_dump())
        self.db.add(volume)
        await self._commit()
        logger.info(f"Created volume {volume.number} (chapters {volume.start_chapter}-{volume.end_chapter})")
        return volume

    async def update(self, volume_id: int, payload: VolumeUpdate) -> Volume:
        volume = await self.get(volume_id)
        values = payload.model_dump(exclude_unset=True)
        start = values.get("start_chapter", volume.start_chapter)
        end = values.get("end_chapter", volume.end_chapter)
        if start > end:
            raise BadRequestError("startChapter must not be greater than endChapter")
        apply_fields(volume, values)
        await self._commit()
        return await self.get(volume_id)

    async def delete(self, volume_id: int) -> None:
        volume = await self.get(volume_id)
        await self.db.delete(volume)
        await self.db.commit()

    async def find_by_chapter(self, chapter_number: int) -> Volume | None:
        result = await self.db.execute(
            select(Volume)
            .where(Volume.start_chapter <= chapter_number, Volume.end_chapter >= chapter_number)
            .order_by(Volume.number)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def by_chapter(self, chapter_number: int) -> Volume:
        volume = await self.find_by_chapter(chapter_number)
        if volume is None:
            raise NotFoundError(f"No volume contains chapter {chapter_number}")
        return volume

    async def chapters(self, volume_id: int) -> list[Chapter]:
        volume = await self.get(volume_id)
        result = await self.db.execute(
            select(Chapter)
            .where(Chapter.number.between(volume.start_chapter, volume.end_chapter))
            .order_by(Chapter.number)
        )
        return list(result.scalars().all())
