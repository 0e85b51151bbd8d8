"""Chapter spoiler endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.auth import get_current_user, require_moderator
from fansite.db import schemas
from fansite.db.database import get_db
from fansite.db.models import SpoilerCategory, SpoilerLevel
from fansite.services.chapter_spoiler_service import ChapterSpoilerService
from fansite.services.pagination import PageParams, page_params

router = APIRouter()


@router.get("", response_model=schemas.Page[schemas.ChapterSpoilerResponse])
async def list_chapter_spoilers(
    params: PageParams = Depends(page_params),
    level: SpoilerLevel | None = Query(default=None),
    category: SpoilerCategory | None = Query(default=None),
    chapter_id: int | None = Query(default=None, alias="chapterId"),
    is_verified: bool | None = Query(default=None, alias="isVerified"),
    db: AsyncSession = Depends(get_db),
):
    return await ChapterSpoilerService(db).list(
        params,
        level=level.value if level else None,
        category=category.value if category else None,
        chapter_id=chapter_id,
        is_verified=is_verified,
    )


@router.post("/check-viewable", response_model=schemas.CheckViewableResponse)
async def check_viewable(payload: schemas.CheckViewableRequest, db: AsyncSession = Depends(get_db)):
    """Whether a reader who has read the given chapters may see the spoiler."""
    can_view = await ChapterSpoilerService(db).check_viewable(payload.spoiler_id, payload.read_chapter_ids)
    return {"can_view": can_view}


@router.get("/{spoiler_id}", response_model=schemas.ChapterSpoilerResponse)
async def get_chapter_spoiler(spoiler_id: int, db: AsyncSession = Depends(get_db)):
    return await ChapterSpoilerService(db).get(spoiler_id)


@router.post("", response_model=schemas.ChapterSpoilerResponse, status_code=201, dependencies=[Depends(get_current_user)])
async def create_chapter_spoiler(payload: schemas.ChapterSpoilerCreate, db: AsyncSession = Depends(get_db)):
    return await ChapterSpoilerService(db).create(payload)


@router.put("/{spoiler_id}/verify", response_model=schemas.ChapterSpoilerResponse, dependencies=[Depends(require_moderator)])
async def verify_chapter_spoiler(spoiler_id: int, db: AsyncSession = Depends(get_db)):
    return await ChapterSpoilerService(db).verify(spoiler_id)


@router.put("/{spoiler_id}", response_model=schemas.ChapterSpoilerResponse, dependencies=[Depends(require_moderator)])
async def update_chapter_spoiler(
    spoiler_id: int,
    payload: schemas.ChapterSpoilerUpdate,
    db: AsyncSession = Depends(get_db),
):
    return await ChapterSpoilerService(db).update(spoiler_id, payload)


@router.delete("/{spoiler_id}", status_code=204, dependencies=[Depends(require_moderator)])
async def delete_chapter_spoiler(spoiler_id: int, db: AsyncSession = Depends(get_db)):
    await ChapterSpoilerService(db).delete(spoiler_id)
