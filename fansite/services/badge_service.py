"""Profile badges: awarding, revoking and expiry."""

from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.errors import BadRequestError, NotFoundError
from fansite.db.database import async_session
from fansite.db.models import Badge, BadgeType, User, UserBadge, utcnow
from fansite.db.schemas import AwardBadgeRequest
from fansite.services.common import get_or_404

logger = logging.getLogger(__name__)

# Badge types a user may hold more than once (one per year or per renewal)
REPEATABLE_TYPES = {BadgeType.SUPPORTER.value, BadgeType.ACTIVE_SUPPORTER.value}


def active_badge_filter():
    now = utcnow()
    return (UserBadge.is_active.is_(True)) & or_(UserBadge.expires_at.is_(None), UserBadge.expires_at > now)


class BadgeService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self) -> list[Badge]:
        result = await self.db.execute(
            select(Badge).where(Badge.is_active.is_(True)).order_by(Badge.display_order, Badge.id)
        )
        return list(result.scalars().all())

    async def get(self, badge_id: int) -> Badge:
        return await get_or_404(self.db, Badge, badge_id, "Badge")

    async def user_badges(self, user_id: int) -> list[UserBadge]:
        """Active, unexpired badges of a user in display order."""
        result = await self.db.execute(
            select(UserBadge)
            .join(Badge, Badge.id == UserBadge.badge_id)
            .where(UserBadge.user_id == user_id, active_badge_filter())
            .order_by(Badge.display_order, UserBadge.awarded_at)
        )
        return list(result.scalars().all())

    async def award(self, payload: AwardBadgeRequest, awarded_by: User | None = None) -> UserBadge:
        if await self.db.get(User, payload.user_id) is None:
            raise NotFoundError(f"User with id {payload.user_id} not found")
        badge = await self.get(payload.badge_id)
        if badge.type == BadgeType.CUSTOM.value and not badge.is_manually_awardable:
            raise BadRequestError(f"Badge '{badge.name}' cannot be awarded manually")

        existing = (await self.db.execute(
            select(UserBadge).where(
                UserBadge.user_id == payload.user_id,
                UserBadge.badge_id == badge.id,
                UserBadge.is_active.is_(True),
            )
        )).scalars().all()

        if existing and badge.type not in REPEATABLE_TYPES:
            raise BadRequestError("User already has this active badge")
        if badge.type == BadgeType.SUPPORTER.value and payload.year:
            if any(ub.year == payload.year for ub in existing):
                raise BadRequestError(f"User already has this badge for year {payload.year}")

        now = utcnow()
        expires_at = payload.expires_at.replace(tzinfo=None) if payload.expires_at else None
        year = payload.year
        if badge.type == BadgeType.ACTIVE_SUPPORTER.value:
            # Always one year from now; replaces the previous award
            expires_at = now + timedelta(days=365)
            for old in existing:
                await self.db.delete(old)
        elif badge.type == BadgeType.SUPPORTER.value and year is None:
            year = now.year

        user_badge = UserBadge(
            user_id=payload.user_id,
            badge_id=badge.id,
            awarded_at=now,
            expires_at=expires_at,
            year=year,
            reason=payload.reason,
            awarded_by_user_id=awarded_by.id if awarded_by else None,
            is_active=True,
        )
        self.db.add(user_badge)
        await self.db.commit()
        logger.info(f"Awarded badge {badge.name} to user {payload.user_id}")
        return await get_or_404(self.db, UserBadge, user_badge.id, "User badge")

    async def revoke(self, user_id: int, badge_id: int, reason: str | None = None, revoked_by: User | None = None) -> None:
        result = await self.db.execute(
            select(UserBadge).where(
                UserBadge.user_id == user_id,
                UserBadge.badge_id == badge_id,
                UserBadge.is_active.is_(True),
            )
        )
        user_badge = result.scalars().first()
        if user_badge is None:
            raise NotFoundError("Active user badge not found")
        user_badge.is_active = False
        user_badge.revoked_at = utcnow()
        user_badge.revoked_reason = reason or "No reason provided"
        user_badge.revoked_by_user_id = revoked_by.id if revoked_by else None
        await self.db.commit()
        logger.info(f"Revoked badge {badge_id} from user {user_id}")

    async def expire(self) -> int:
        """Deactivate awards whose expiry date has passed."""
        result = await self.db.execute(
            update(UserBadge)
            .where(
                UserBadge.is_active.is_(True),
                UserBadge.expires_at.is_not(None),
                UserBadge.expires_at <= utcnow(),
            )
            .values(is_active=False)
        )
        await self.db.commit()
        expired = result.rowcount or 0
        if expired:
            logger.info(f"Expired {expired} user badges")
        return expired


async def expire_user_badges() -> int:
    """Scheduler entry point."""
    async with async_session() as db:
        return await BadgeService(db).expire()
