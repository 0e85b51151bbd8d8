"""
Community guides.

Guides are written by users and published once a moderator approves them.
Only pending guides can be approved or rejected. An author editing a rejected
guide sends it back to the queue.
"""

import logging

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.auth import is_moderator
from fansite.core.errors import BadRequestError, ForbiddenError, NotFoundError
from fansite.db.models import (
    Arc, Character, Gamble, Guide, GuideLike, ModerationStatus, Tag, User,
)
from fansite.db.schemas import GuideCreate, GuideUpdate
from fansite.services.common import apply_fields, ensure_exists, get_or_404, load_many
from fansite.services.pagination import PageParams, contains, paginate
from fansite.services.tag_service import TagService

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "createdAt": Guide.created_at,
    "updatedAt": Guide.updated_at,
    "likeCount": Guide.like_count,
    "viewCount": Guide.view_count,
    "title": Guide.title,
}

APPROVED = ModerationStatus.APPROVED.value
PENDING = ModerationStatus.PENDING.value
REJECTED = ModerationStatus.REJECTED.value

_RELATION_KEYS = ("tag_names", "character_ids", "gamble_ids")
_DEFAULT_SORT = [Guide.created_at.desc(), Guide.id.desc()]


class GuideService:
    def __init__(self, db: AsyncSession):
        self.db = db

    def _filtered(
        self,
        query,
        search: str | None = None,
        tag: str | None = None,
        author_id: int | None = None,
        character_id: int | None = None,
        arc_id: int | None = None,
    ):
        if search:
            query = query.where(or_(contains(Guide.title, search), contains(Guide.description, search)))
        if tag:
            query = query.where(Guide.tags.any(contains(Tag.name, tag)))
        if author_id is not None:
            query = query.where(Guide.author_id == author_id)
        if character_id is not None:
            query = query.where(Guide.characters.any(Character.id == character_id))
        if arc_id is not None:
            query = query.where(Guide.arc_id == arc_id)
        return query

    async def list_public(self, params: PageParams, **filters) -> dict:
        query = self._filtered(select(Guide).where(Guide.status == APPROVED), **filters)
        return await paginate(self.db, query, params, SORT_FIELDS, default_sort=_DEFAULT_SORT)

    async def list_all(self, params: PageParams, status: str | None = None, **filters) -> dict:
        query = select(Guide)
        if status:
            query = query.where(Guide.status == status)
        return await paginate(self.db, self._filtered(query, **filters), params, SORT_FIELDS, default_sort=_DEFAULT_SORT)

    async def list_pending(self, params: PageParams) -> dict:
        query = select(Guide).where(Guide.status == PENDING)
        return await paginate(self.db, query, params, SORT_FIELDS, default_sort=[Guide.created_at.asc(), Guide.id.asc()])

    async def list_mine(self, params: PageParams, user: User) -> dict:
        query = select(Guide).where(Guide.author_id == user.id)
        return await paginate(self.db, query, params, SORT_FIELDS, default_sort=_DEFAULT_SORT)

    async def list_liked(self, params: PageParams, user: User) -> dict:
        query = select(Guide).where(
            Guide.status == APPROVED,
            Guide.id.in_(select(GuideLike.guide_id).where(GuideLike.user_id == user.id)),
        )
        return await paginate(self.db, query, params, SORT_FIELDS, default_sort=_DEFAULT_SORT)

    async def get(self, guide_id: int) -> Guide:
        return await get_or_404(self.db, Guide, guide_id, "Guide")

    async def get_public(self, guide_id: int) -> Guide:
        """Approved guide by id; each fetch counts as a view."""
        guide = await self.get(guide_id)
        if guide.status != APPROVED:
            raise NotFoundError(f"Guide with id {guide_id} not found")
        guide.view_count = (guide.view_count or 0) + 1
        await self.db.commit()
        return await self.get(guide_id)

    async def get_for_viewer(self, guide_id: int, viewer: User) -> Guide:
        guide = await self.get(guide_id)
        if guide.status != APPROVED and guide.author_id != viewer.id and not is_moderator(viewer):
            raise NotFoundError(f"Guide with id {guide_id} not found")
        return guide

    async def _apply_relations(self, guide: Guide, values: dict) -> None:
        if "arc_id" in values:
            await ensure_exists(self.db, Arc, values["arc_id"], "Arc")
        if values.get("character_ids") is not None:
            guide.characters = await load_many(self.db, Character, values["character_ids"], "Character")
        if values.get("gamble_ids") is not None:
            guide.gambles = await load_many(self.db, Gamble, values["gamble_ids"], "Gamble")
        if values.get("tag_names") is not None:
            guide.tags = await TagService(self.db).find_or_create(values["tag_names"])

    async def create(self, payload: GuideCreate, user: User) -> Guide:
        values = payload.model_dump()
        guide = Guide(author_id=user.id, status=PENDING, tags=[], characters=[], gambles=[])
        await self._apply_relations(guide, values)
        apply_fields(guide, {k: v for k, v in values.items() if k not in _RELATION_KEYS})
        self.db.add(guide)
        await self.db.commit()
        logger.info(f"Guide {guide.id} submitted by user {user.id}")
        return await self.get(guide.id)

    async def update(self, guide_id: int, payload: GuideUpdate, user: User) -> Guide:
        guide = await self.get(guide_id)
        is_author = guide.author_id == user.id
        if not is_author and not is_moderator(user):
            raise ForbiddenError("You can only edit your own guides")

        values = payload.model_dump(exclude_unset=True)
        await self._apply_relations(guide, values)
        apply_fields(guide, {k: v for k, v in values.items() if k not in _RELATION_KEYS})
        if is_author and guide.status == REJECTED:
            guide.status = PENDING
            guide.rejection_reason = None
        await self.db.commit()
        return await self.get(guide_id)

    async def delete(self, guide_id: int, user: User) -> None:
        guide = await self.get(guide_id)
        if guide.author_id != user.id and not is_moderator(user):
            raise ForbiddenError("You can only delete your own guides")
        await self.db.delete(guide)
        await self.db.commit()

    async def toggle_like(self, guide_id: int, user: User) -> dict:
        guide = await self.get(guide_id)
        if guide.status != APPROVED:
            raise BadRequestError("Only approved guides can be liked")

        result = await self.db.execute(
            select(GuideLike).where(GuideLike.guide_id == guide_id, GuideLike.user_id == user.id)
        )
        existing = result.scalar_one_or_none()
        if existing:
            await self.db.execute(delete(GuideLike).where(GuideLike.id == existing.id))
            guide.like_count = max(0, (guide.like_count or 0) - 1)
            liked = False
        else:
            self.db.add(GuideLike(guide_id=guide_id, user_id=user.id))
            guide.like_count = (guide.like_count or 0) + 1
            liked = True

        try:
            await self.db.commit()
        except IntegrityError:
            # Concurrent double-like from the same user
            await self.db.rollback()
            guide = await self.get(guide_id)
            liked = True
        return {"liked": liked, "like_count": guide.like_count}

    async def _moderate(self, guide_id: int, status: str, reason: str | None = None) -> Guide:
        guide = await self.get(guide_id)
        if guide.status != PENDING:
            raise BadRequestError(f"Only pending guides can be {status}")
        guide.status = status
        guide.rejection_reason = reason if status == REJECTED else None
        await self.db.commit()
        logger.info(f"Guide {guide_id} {status}")
        return await self.get(guide_id)

    async def approve(self, guide_id: int) -> Guide:
        return await self._moderate(guide_id, APPROVED)

    async def reject(self, guide_id: int, reason: str | None = None) -> Guide:
        return await self._moderate(guide_id, REJECTED, reason)
