"""Annotations attached to characters, gambles, chapters and arcs."""

import logging

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.auth import is_moderator
from fansite.core.errors import BadRequestError, ForbiddenError, NotFoundError
from fansite.db.models import (
    Annotation, AnnotationOwnerType, Arc, Chapter, Character, Gamble,
    ModerationStatus, User,
)
from fansite.db.schemas import AnnotationCreate, AnnotationUpdate
from fansite.services.common import apply_fields, get_or_404
from fansite.services.pagination import PageParams, paginate

logger = logging.getLogger(__name__)

OWNER_MODELS = {
    AnnotationOwnerType.CHARACTER.value: Character,
    AnnotationOwnerType.GAMBLE.value: Gamble,
    AnnotationOwnerType.CHAPTER.value: Chapter,
    AnnotationOwnerType.ARC.value: Arc,
}

SORT_FIELDS = {
    "createdAt": Annotation.created_at,
    "chapterReference": Annotation.chapter_reference,
    "title": Annotation.title,
}

APPROVED = ModerationStatus.APPROVED.value
PENDING = ModerationStatus.PENDING.value
REJECTED = ModerationStatus.REJECTED.value


def _check_spoiler(is_spoiler: bool, spoiler_chapter: int | None) -> None:
    if is_spoiler and not spoiler_chapter:
        raise BadRequestError("spoilerChapter is required when isSpoiler is true")


class AnnotationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _ensure_owner(self, owner_type: str, owner_id: int) -> None:
        model = OWNER_MODELS.get(owner_type)
        if model is None:
            raise BadRequestError(f"Unsupported owner type: {owner_type}")
        if await self.db.get(model, owner_id) is None:
            raise BadRequestError(f"{model.__name__} with id {owner_id} does not exist")

    async def for_owner(self, owner_type: str, owner_id: int, params: PageParams) -> dict:
        if owner_type not in OWNER_MODELS:
            raise BadRequestError(f"Unsupported owner type: {owner_type}")
        query = select(Annotation).where(
            Annotation.owner_type == owner_type,
            Annotation.owner_id == owner_id,
            Annotation.status == APPROVED,
        )
        return await paginate(self.db, query, params, SORT_FIELDS, default_sort=[Annotation.created_at.desc(), Annotation.id.desc()])

    async def for_chapter(self, chapter_number: int, params: PageParams) -> dict:
        """Annotations referencing the chapter or attached to it directly."""
        chapter_ids = select(Chapter.id).where(Chapter.number == chapter_number)
        query = select(Annotation).where(
            or_(
                Annotation.chapter_reference == chapter_number,
                and_(
                    Annotation.owner_type == AnnotationOwnerType.CHAPTER.value,
                    Annotation.owner_id.in_(chapter_ids),
                ),
            ),
            Annotation.status == APPROVED,
        )
        return await paginate(self.db, query, params, SORT_FIELDS, default_sort=[Annotation.created_at.desc(), Annotation.id.desc()])

    async def list_mine(self, params: PageParams, user: User) -> dict:
        query = select(Annotation).where(Annotation.author_id == user.id)
        return await paginate(self.db, query, params, SORT_FIELDS, default_sort=[Annotation.created_at.desc(), Annotation.id.desc()])

    async def list_pending(self, params: PageParams) -> dict:
        query = select(Annotation).where(Annotation.status == PENDING)
        return await paginate(self.db, query, params, SORT_FIELDS, default_sort=[Annotation.created_at.asc(), Annotation.id.asc()])

    async def get(self, annotation_id: int, viewer: User | None = None) -> Annotation:
        annotation = await get_or_404(self.db, Annotation, annotation_id, "Annotation")
        if annotation.status != APPROVED and not is_moderator(viewer):
            if viewer is None or annotation.author_id != viewer.id:
                raise NotFoundError(f"Annotation with id {annotation_id} not found")
        return annotation

    async def create(self, payload: AnnotationCreate, user: User) -> Annotation:
        _check_spoiler(payload.is_spoiler, payload.spoiler_chapter)
        await self._ensure_owner(payload.owner_type.value, payload.owner_id)
        annotation = Annotation(author_id=user.id, status=PENDING)
        apply_fields(annotation, payload.model_dump())
        self.db.add(annotation)
        await self.db.commit()
        logger.info(f"Annotation {annotation.id} submitted by user {user.id} on {annotation.owner_type} {annotation.owner_id}")
        return await get_or_404(self.db, Annotation, annotation.id, "Annotation")

    async def update(self, annotation_id: int, payload: AnnotationUpdate, user: User) -> Annotation:
        annotation = await get_or_404(self.db, Annotation, annotation_id, "Annotation")
        if annotation.author_id != user.id:
            raise ForbiddenError("You can only edit your own annotations")
        if annotation.status == APPROVED:
            raise ForbiddenError("Approved annotations can no longer be edited")

        values = payload.model_dump(exclude_unset=True)
        _check_spoiler(
            values.get("is_spoiler", annotation.is_spoiler),
            values.get("spoiler_chapter", annotation.spoiler_chapter),
        )
        apply_fields(annotation, values)
        if annotation.status == REJECTED:
            annotation.status = PENDING
            annotation.rejection_reason = None
        await self.db.commit()
        return await get_or_404(self.db, Annotation, annotation_id, "Annotation")

    async def delete(self, annotation_id: int, user: User) -> None:
        annotation = await get_or_404(self.db, Annotation, annotation_id, "Annotation")
        if annotation.author_id != user.id and not is_moderator(user):
            raise ForbiddenError("You can only delete your own annotations")
        await self.db.delete(annotation)
        await self.db.commit()

    async def _moderate(self, annotation_id: int, status: str, reason: str | None = None) -> Annotation:
        annotation = await get_or_404(self.db, Annotation, annotation_id, "Annotation")
        if annotation.status != PENDING:
            raise BadRequestError(f"Only pending annotations can be {status}")
        annotation.status = status
        annotation.rejection_reason = reason if status == REJECTED else None
        await self.db.commit()
        return await get_or_404(self.db, Annotation, annotation_id, "Annotation")

    async def approve(self, annotation_id: int) -> Annotation:
        return await self._moderate(annotation_id, APPROVED)

    async def reject(self, annotation_id: int, reason: str | None = None) -> Annotation:
        return await self._moderate(annotation_id, REJECTED, reason)
