"""Badge endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.auth import require_admin_role
from fansite.db import schemas
from fansite.db.database import get_db
from fansite.db.models import User
from fansite.services.badge_service import BadgeService

router = APIRouter()


@router.get("", response_model=list[schemas.BadgeResponse])
async def list_badges(db: AsyncSession = Depends(get_db)):
    return await BadgeService(db).list()


@router.get("/user/{user_id}", response_model=list[schemas.UserBadgeResponse])
async def user_badges(user_id: int, db: AsyncSession = Depends(get_db)):
    """Active, unexpired badges of a user."""
    return await BadgeService(db).user_badges(user_id)


@router.post("/award", response_model=schemas.UserBadgeResponse, status_code=201)
async def award_badge(
    payload: schemas.AwardBadgeRequest,
    admin: User = Depends(require_admin_role),
    db: AsyncSession = Depends(get_db),
):
    return await BadgeService(db).award(payload, awarded_by=admin)


@router.delete("/user/{user_id}/badge/{badge_id}", response_model=schemas.MessageResponse)
async def revoke_badge(
    user_id: int,
    badge_id: int,
    reason: str | None = Query(default=None, max_length=500),
    admin: User = Depends(require_admin_role),
    db: AsyncSession = Depends(get_db),
):
    await BadgeService(db).revoke(user_id, badge_id, reason, revoked_by=admin)
    return {"message": "Badge revoked"}


@router.post("/expire-badges", response_model=schemas.ExpireBadgesResponse, dependencies=[Depends(require_admin_role)])
async def expire_badges(db: AsyncSession = Depends(get_db)):
    """Run the expiry job now instead of waiting for the scheduler."""
    return {"expired_count": await BadgeService(db).expire()}


@router.get("/{badge_id}", response_model=schemas.BadgeResponse)
async def get_badge(badge_id: int, db: AsyncSession = Depends(get_db)):
    return await BadgeService(db).get(badge_id)
