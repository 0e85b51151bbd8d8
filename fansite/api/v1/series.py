"""Series endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.auth import require_admin_role, require_moderator
from fansite.db import schemas
from fansite.db.database import get_db
from fansite.services.pagination import PageParams, page_params
from fansite.services.series_service import SeriesService

router = APIRouter()


@router.get("", response_model=schemas.Page[schemas.SeriesResponse])
async def list_series(
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
):
    return await SeriesService(db).list(params)


@router.get("/{series_id}", response_model=schemas.SeriesResponse)
async def get_series(series_id: int, db: AsyncSession = Depends(get_db)):
    return await SeriesService(db).get(series_id)


@router.post("", response_model=schemas.SeriesResponse, status_code=201, dependencies=[Depends(require_moderator)])
async def create_series(payload: schemas.SeriesCreate, db: AsyncSession = Depends(get_db)):
    return await SeriesService(db).create(payload)


@router.put("/{series_id}", response_model=schemas.SeriesResponse, dependencies=[Depends(require_moderator)])
async def update_series(series_id: int, payload: schemas.SeriesUpdate, db: AsyncSession = Depends(get_db)):
    return await SeriesService(db).update(series_id, payload)


@router.delete("/{series_id}", status_code=204, dependencies=[Depends(require_admin_role)])
async def delete_series(series_id: int, db: AsyncSession = Depends(get_db)):
    await SeriesService(db).delete(series_id)
