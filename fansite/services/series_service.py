"""Series CRUD."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.errors import BadRequestError
from fansite.db.models import Series
from fansite.db.schemas import SeriesCreate, SeriesUpdate
from fansite.services.common import apply_fields, get_or_404
from fansite.services.pagination import PageParams, paginate

logger = logging.getLogger(__name__)

SORT_FIELDS = {"id": Series.id, "name": Series.name, "order": Series.order}


class SeriesService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self, params: PageParams) -> dict:
        return await paginate(
            self.db, select(Series), params, SORT_FIELDS,
            default_sort=[Series.order.asc(), Series.id.asc()],
        )

    async def get(self, series_id: int) -> Series:
        return await get_or_404(self.db, Series, series_id, "Series")

    async def create(self, payload: SeriesCreate) -> Series:
        if not payload.name.strip():
            raise BadRequestError("Name is required")
        series = Series(name=payload.name.strip(), order=payload.order, description=payload.description)
        self.db.add(series)
        await self.db.commit()
        logger.info(f"Created series {series.id} ({series.name})")
        return series

    async def update(self, series_id: int, payload: SeriesUpdate) -> Series:
        series = await self.get(series_id)
        values = payload.model_dump(exclude_unset=True)
        if "name" in values and not (values["name"] or "").strip():
            raise BadRequestError("Name is required")
        apply_fields(series, values)
        await self.db.commit()
        return await self.get(series_id)

    async def delete(self, series_id: int) -> None:
        series = await self.get(series_id)
        await self.db.delete(series)
        await self.db.commit()
        logger.info(f"Deleted series {series_id}")
