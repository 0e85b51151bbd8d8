"""Tags, with the default listing served from cache."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.cache import get_cache
from fansite.core.errors import ConflictError
from fansite.db.models import Tag
from fansite.db.schemas import Page, TagCreate, TagResponse, TagUpdate
from fansite.services.common import apply_fields, get_or_404
from fansite.services.pagination import PageParams, contains, paginate

logger = logging.getLogger(__name__)

SORT_FIELDS = {"id": Tag.id, "name": Tag.name}


class TagService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.cache = get_cache()

    async def list(self, params: PageParams, name: str | None = None) -> dict:
        cache_key = None
        if not name:
            cache_key = self.cache.tag_list_key(params.page, params.limit, params.sort, params.order)
            cached = await self.cache.get(cache_key)
            if cached is not None:
                return cached

        query = select(Tag)
        if name:
            query = query.where(contains(Tag.name, name))
        page = await paginate(self.db, query, params, SORT_FIELDS, default_sort=[Tag.name.asc()])

        if cache_key:
            await self.cache.set(cache_key, Page[TagResponse].model_validate(page).model_dump(mode="json"))
        return page

    async def get(self, tag_id: int) -> Tag:
        return await get_or_404(self.db, Tag, tag_id, "Tag")

    async def _ensure_unique(self, name: str, exclude_id: int | None = None) -> None:
        query = select(Tag.id).where(func.lower(Tag.name) == name.lower())
        if exclude_id is not None:
            query = query.where(Tag.id != exclude_id)
        if (await self.db.execute(query)).first() is not None:
            raise ConflictError(f"Tag '{name}' already exists")

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Tag name already exists")
        await self.cache.flush_pattern("tags:*")

    async def create(self, payload: TagCreate) -> Tag:
        await self._ensure_unique(payload.name)
        tag = Tag(name=payload.name.strip(), description=payload.description)
        self.db.add(tag)
        await self._commit()
        return tag

    async def update(self, tag_id: int, payload: TagUpdate) -> Tag:
        tag = await self.get(tag_id)
        values = payload.model_dump(exclude_unset=True)
        if values.get("name"):
            await self._ensure_unique(values["name"], exclude_id=tag_id)
        apply_fields(tag, values)
        await self._commit()
        return await self.get(tag_id)

    async def delete(self, tag_id: int) -> None:
        tag = await self.get(tag_id)
        await self.db.delete(tag)
        await self._commit()

    async def find_or_create(self, names: list[str]) -> list[Tag]:
        """Resolve tag names case-insensitively, creating the missing ones (no commit)."""
        tags = []
        for raw in dict.fromkeys(n.strip() for n in names if n and n.strip()):
            result = await self.db.execute(select(Tag).where(func.lower(Tag.name) == raw.lower()))
            tag = result.scalar_one_or_none()
            if tag is None:
                tag = Tag(name=raw)
                self.db.add(tag)
                await self.db.flush()
                await self.cache.flush_pattern("tags:*")
            tags.append(tag)
        return tags
