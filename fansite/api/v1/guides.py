"""Guide endpoints: public browsing, authoring, likes and moderation."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.auth import get_current_user, require_moderator
from fansite.db import schemas
from fansite.db.database import get_db
from fansite.db.models import ModerationStatus, User
from fansite.services.guide_service import GuideService
from fansite.services.pagination import PageParams, page_params

router = APIRouter()


def guide_filters(
    search: str | None = Query(default=None),
    tag: str | None = Query(default=None),
    author_id: int | None = Query(default=None, alias="authorId"),
    character_id: int | None = Query(default=None, alias="characterId"),
    arc_id: int | None = Query(default=None, alias="arcId"),
) -> dict:
    return {
        "search": search,
        "tag": tag,
        "author_id": author_id,
        "character_id": character_id,
        "arc_id": arc_id,
    }


@router.get("/public", response_model=schemas.Page[schemas.GuideResponse])
async def list_public_guides(
    params: PageParams = Depends(page_params),
    filters: dict = Depends(guide_filters),
    db: AsyncSession = Depends(get_db),
):
    return await GuideService(db).list_public(params, **filters)


@router.get("/public/{guide_id}", response_model=schemas.GuideResponse)
async def get_public_guide(guide_id: int, db: AsyncSession = Depends(get_db)):
    """Approved guide; every fetch is counted as a view."""
    return await GuideService(db).get_public(guide_id)


@router.get("/my-guides", response_model=schemas.Page[schemas.GuideResponse])
async def my_guides(
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await GuideService(db).list_mine(params, user)


@router.get("/liked", response_model=schemas.Page[schemas.GuideResponse])
async def liked_guides(
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await GuideService(db).list_liked(params, user)


@router.get("/pending", response_model=schemas.Page[schemas.GuideResponse], dependencies=[Depends(require_moderator)])
async def pending_guides(
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
):
    return await GuideService(db).list_pending(params)


@router.get("", response_model=schemas.Page[schemas.GuideResponse], dependencies=[Depends(require_moderator)])
async def list_all_guides(
    params: PageParams = Depends(page_params),
    status: ModerationStatus | None = Query(default=None),
    filters: dict = Depends(guide_filters),
    db: AsyncSession = Depends(get_db),
):
    return await GuideService(db).list_all(params, status.value if status else None, **filters)


@router.get("/{guide_id}", response_model=schemas.GuideResponse)
async def get_guide(
    guide_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Any guide visible to the caller: approved ones, their own, or all for moderators."""
    return await GuideService(db).get_for_viewer(guide_id, user)


@router.post("", response_model=schemas.GuideResponse, status_code=201)
async def create_guide(
    payload: schemas.GuideCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await GuideService(db).create(payload, user)


@router.patch("/{guide_id}", response_model=schemas.GuideResponse)
async def update_guide(
    guide_id: int,
    payload: schemas.GuideUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await GuideService(db).update(guide_id, payload, user)


@router.delete("/{guide_id}", status_code=204)
async def delete_guide(
    guide_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await GuideService(db).delete(guide_id, user)


@router.post("/{guide_id}/like", response_model=schemas.GuideLikeResponse)
async def toggle_like(
    guide_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await GuideService(db).toggle_like(guide_id, user)


@router.post("/{guide_id}/approve", response_model=schemas.GuideResponse, dependencies=[Depends(require_moderator)])
async def approve_guide(guide_id: int, db: AsyncSession = Depends(get_db)):
    return await GuideService(db).approve(guide_id)


@router.post("/{guide_id}/reject", response_model=schemas.GuideResponse, dependencies=[Depends(require_moderator)])
async def reject_guide(
    guide_id: int,
    payload: schemas.RejectRequest | None = None,
    db: AsyncSession = Depends(get_db),
):
    return await GuideService(db).reject(guide_id, payload.reason if payload else None)
