"""Volume endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.auth import require_admin_role, require_moderator
from fansite.db import schemas
from fansite.db.database import get_db
from fansite.services.pagination import PageParams, page_params
from fansite.services.volume_service import VolumeService

router = APIRouter()


@router.get("", response_model=schemas.Page[schemas.VolumeResponse])
async def list_volumes(
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
):
    return await VolumeService(db).list(params)


@router.get("/chapter/{chapter_number}", response_model=schemas.VolumeResponse)
async def volume_for_chapter(chapter_number: int, db: AsyncSession = Depends(get_db)):
    """The volume whose chapter range contains the given chapter."""
    return await VolumeService(db).by_chapter(chapter_number)


@router.get("/{volume_id}", response_model=schemas.VolumeResponse)
async def get_volume(volume_id: int, db: AsyncSession = Depends(get_db)):
    return await VolumeService(db).get(volume_id)


@router.get("/{volume_id}/chapters", response_model=list[schemas.ChapterSummary])
async def volume_chapters(volume_id: int, db: AsyncSession = Depends(get_db)):
    return await VolumeService(db).chapters(volume_id)


@router.post("", response_model=schemas.VolumeResponse, status_code=201, dependencies=[Depends(require_moderator)])
async def create_volume(payload: schemas.VolumeCreate, db: AsyncSession = Depends(get_db)):
    return await VolumeService(db).create(payload)


@router.put("/{volume_id}", response_model=schemas.VolumeResponse, dependencies=[Depends(require_moderator)])
async def update_volume(volume_id: int, payload: schemas.VolumeUpdate, db: AsyncSession = Depends(get_db)):
    return await VolumeService(db).update(volume_id, payload)


@router.delete("/{volume_id}", status_code=204, dependencies=[Depends(require_admin_role)])
async def delete_volume(volume_id: int, db: AsyncSession = Depends(get_db)):
    await VolumeService(db).delete(volume_id)
