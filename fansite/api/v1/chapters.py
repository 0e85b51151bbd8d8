"""Chapter endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.auth import require_admin_role, require_moderator
from fansite.db import schemas
from fansite.db.database import get_db
from fansite.services.chapter_service import ChapterService
from fansite.services.pagination import PageParams, page_params

router = APIRouter()


@router.get("", response_model=schemas.Page[schemas.ChapterSummary])
async def list_chapters(
    params: PageParams = Depends(page_params),
    title: str | None = Query(default=None),
    number: int | None = Query(default=None, ge=1),
    db: AsyncSession = Depends(get_db),
):
    return await ChapterService(db).list(params, title=title, number=number)


@router.get("/number/{number}", response_model=schemas.ChapterResponse)
async def get_chapter_by_number(number: int, db: AsyncSession = Depends(get_db)):
    service = ChapterService(db)
    return await service.with_volume(await service.get_by_number(number))


@router.get("/{chapter_id}", response_model=schemas.ChapterResponse)
async def get_chapter(chapter_id: int, db: AsyncSession = Depends(get_db)):
    service = ChapterService(db)
    return await service.with_volume(await service.get(chapter_id))


@router.post("", response_model=schemas.ChapterResponse, status_code=201, dependencies=[Depends(require_moderator)])
async def create_chapter(payload: schemas.ChapterCreate, db: AsyncSession = Depends(get_db)):
    service = ChapterService(db)
    return await service.with_volume(await service.create(payload))


@router.put("/{chapter_id}", response_model=schemas.ChapterResponse, dependencies=[Depends(require_moderator)])
async def update_chapter(chapter_id: int, payload: schemas.ChapterUpdate, db: AsyncSession = Depends(get_db)):
    service = ChapterService(db)
    return await service.with_volume(await service.update(chapter_id, payload))


@router.delete("/{chapter_id}", status_code=204, dependencies=[Depends(require_admin_role)])
async def delete_chapter(chapter_id: int, db: AsyncSession = Depends(get_db)):
    await ChapterService(db).delete(chapter_id)
