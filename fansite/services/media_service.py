"""Externally hosted media attached to entities, moderated before display."""

from __future__ import annotations

import logging
from urllib.parse import urlparse

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.errors import BadRequestError
from fansite.db.models import (
    Arc, Character, Event, Gamble, Media, MediaOwnerType, ModerationStatus,
    Organization, User, Volume,
)
from fansite.db.schemas import MediaCreate
from fansite.services.common import get_or_404
from fansite.services.pagination import PageParams, paginate

logger = logging.getLogger(__name__)

OWNER_MODELS = {
    MediaOwnerType.CHARACTER.value: Character,
    MediaOwnerType.ARC.value: Arc,
    MediaOwnerType.EVENT.value: Event,
    MediaOwnerType.GAMBLE.value: Gamble,
    MediaOwnerType.ORGANIZATION.value: Organization,
    MediaOwnerType.VOLUME.value: Volume,
    MediaOwnerType.USER.value: User,
}

SORT_FIELDS = {"id": Media.id, "createdAt": Media.created_at, "chapterNumber": Media.chapter_number}


def is_http_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class MediaService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(
        self,
        params: PageParams,
        owner_type: str | None = None,
        owner_id: int | None = None,
        media_type: str | None = None,
    ) -> dict:
        query = select(Media).where(Media.status == ModerationStatus.APPROVED.value)
        if owner_type:
            query = query.where(Media.owner_type == owner_type)
        if owner_id is not None:
            query = query.where(Media.owner_id == owner_id)
        if media_type:
            query = query.where(Media.type == media_type)
        return await paginate(self.db, query, params, SORT_FIELDS, default_sort=[Media.created_at.desc(), Media.id.desc()])

    async def list_pending(self, params: PageParams) -> dict:
        query = select(Media).where(Media.status == ModerationStatus.PENDING.value)
        return await paginate(self.db, query, params, SORT_FIELDS, default_sort=[Media.created_at.asc(), Media.id.asc()])

    async def create(self, payload: MediaCreate, user: User) -> Media:
        if not is_http_url(payload.url):
            raise BadRequestError("Media URL must be an http(s) link")
        model = OWNER_MODELS[payload.owner_type.value]
        if await self.db.get(model, payload.owner_id) is None:
            raise BadRequestError(f"{model.__name__} with id {payload.owner_id} does not exist")

        media = Media(
            url=payload.url,
            type=payload.type.value,
            description=payload.description,
            owner_type=payload.owner_type.value,
            owner_id=payload.owner_id,
            chapter_number=payload.chapter_number,
            status=ModerationStatus.PENDING.value,
            submitted_by_id=user.id,
        )
        self.db.add(media)
        await self.db.commit()
        logger.info(f"Media {media.id} submitted by user {user.id}")
        return media

    async def approve(self, media_id: int) -> Media:
        media = await get_or_404(self.db, Media, media_id, "Media")
        media.status = ModerationStatus.APPROVED.value
        media.rejection_reason = None
        await self.db.commit()
        return media

    async def reject(self, media_id: int, reason: str | None = None) -> Media:
        media = await get_or_404(self.db, Media, media_id, "Media")
        media.status = ModerationStatus.REJECTED.value
        media.rejection_reason = reason
        await self.db.commit()
        return media

    async def delete(self, media_id: int) -> None:
        media = await get_or_404(self.db, Media, media_id, "Media")
        await self.db.delete(media)
        await self.db.commit()
