"""Media endpoints: user submissions and moderation."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.auth import get_current_user, require_moderator
from fansite.db import schemas
from fansite.db.database import get_db
from fansite.db.models import MediaOwnerType, MediaType, User
from fansite.services.media_service import MediaService
from fansite.services.pagination import PageParams, page_params

router = APIRouter()


@router.get("", response_model=schemas.Page[schemas.MediaResponse])
async def list_media(
    params: PageParams = Depends(page_params),
    owner_type: MediaOwnerType | None = Query(default=None, alias="ownerType"),
    owner_id: int | None = Query(default=None, alias="ownerId"),
    media_type: MediaType | None = Query(default=None, alias="type"),
    db: AsyncSession = Depends(get_db),
):
    return await MediaService(db).list(
        params,
        owner_type=owner_type.value if owner_type else None,
        owner_id=owner_id,
        media_type=media_type.value if media_type else None,
    )


@router.get("/pending", response_model=schemas.Page[schemas.MediaResponse], dependencies=[Depends(require_moderator)])
async def pending_media(
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
):
    return await MediaService(db).list_pending(params)


@router.post("", response_model=schemas.MediaResponse, status_code=201)
async def submit_media(
    payload: schemas.MediaCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await MediaService(db).create(payload, user)


@router.put("/{media_id}/approve", response_model=schemas.MediaResponse, dependencies=[Depends(require_moderator)])
async def approve_media(media_id: int, db: AsyncSession = Depends(get_db)):
    return await MediaService(db).approve(media_id)


@router.put("/{media_id}/reject", response_model=schemas.MediaResponse, dependencies=[Depends(require_moderator)])
async def reject_media(
    media_id: int,
    payload: schemas.RejectRequest | None = None,
    db: AsyncSession = Depends(get_db),
):
    return await MediaService(db).reject(media_id, payload.reason if payload else None)


@router.delete("/{media_id}", status_code=204, dependencies=[Depends(require_moderator)])
async def delete_media(media_id: int, db: AsyncSession = Depends(get_db)):
    await MediaService(db).delete(media_id)
