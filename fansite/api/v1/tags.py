"""Tag endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.auth import require_admin_role, require_moderator
from fansite.db import schemas
from fansite.db.database import get_db
from fansite.services.pagination import PageParams, page_params
from fansite.services.tag_service import TagService

router = APIRouter()


@router.get("", response_model=schemas.Page[schemas.TagResponse])
async def list_tags(
    params: PageParams = Depends(page_params),
    name: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    return await TagService(db).list(params, name=name)


@router.get("/{tag_id}", response_model=schemas.TagResponse)
async def get_tag(tag_id: int, db: AsyncSession = Depends(get_db)):
    return await TagService(db).get(tag_id)


@router.post("", response_model=schemas.TagResponse, status_code=201, dependencies=[Depends(require_moderator)])
async def create_tag(payload: schemas.TagCreate, db: AsyncSession = Depends(get_db)):
    return await TagService(db).create(payload)


@router.put("/{tag_id}", response_model=schemas.TagResponse, dependencies=[Depends(require_moderator)])
async def update_tag(tag_id: int, payload: schemas.TagUpdate, db: AsyncSession = Depends(get_db)):
    return await TagService(db).update(tag_id, payload)


@router.delete("/{tag_id}", status_code=204, dependencies=[Depends(require_admin_role)])
async def delete_tag(tag_id: int, db: AsyncSession = Depends(get_db)):
    await TagService(db).delete(tag_id)
