"""User accounts: public profiles, own settings and progress, admin management."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.config import get_settings
from fansite.core.errors import BadRequestError, ConflictError
from fansite.core.security import hash_password
from fansite.db.models import (
    Annotation, Event, Guide, Media, ModerationStatus, User, UserRole,
)
from fansite.db.schemas import AdminUserCreate, AdminUserUpdate, ProfileUpdate
from fansite.services.auth_service import AuthService
from fansite.services.badge_service import BadgeService
from fansite.services.common import apply_fields, get_or_404
from fansite.services.pagination import PageParams, contains, paginate

logger = logging.getLogger(__name__)
settings = get_settings()

SORT_FIELDS = {
    "id": User.id,
    "username": User.username,
    "createdAt": User.created_at,
    "userProgress": User.user_progress,
}

APPROVED = ModerationStatus.APPROVED.value

# (model, author column) pairs counted on profiles
_SUBMISSION_SOURCES = {
    "guides": (Guide, Guide.author_id),
    "events": (Event, Event.created_by_id),
    "media": (Media, Media.submitted_by_id),
    "annotations": (Annotation, Annotation.author_id),
}


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self, params: PageParams, username: str | None = None, role: str | None = None) -> dict:
        query = select(User)
        if username:
            query = query.where(contains(User.username, username))
        if role:
            query = query.where(User.role == role)
        return await paginate(self.db, query, params, SORT_FIELDS, default_sort=[User.id.asc()])

    async def get(self, user_id: int) -> User:
        return await get_or_404(self.db, User, user_id, "User")

    async def submission_counts(self, user_id: int) -> dict:
        counts = {}
        for key, (model, author_col) in _SUBMISSION_SOURCES.items():
            result = await self.db.execute(
                select(func.count()).select_from(model).where(author_col == user_id, model.status == APPROVED)
            )
            counts[key] = result.scalar_one()
        return counts

    async def public_profile(self, user_id: int) -> dict:
        user = await self.get(user_id)
        return {
            "id": user.id,
            "username": user.username,
            "role": user.role,
            "custom_role": user.custom_role,
            "user_progress": user.user_progress,
            "created_at": user.created_at,
            "badges": await BadgeService(self.db).user_badges(user_id),
            "submissions": await self.submission_counts(user_id),
        }

    async def update_profile(self, user: User, payload: ProfileUpdate) -> User:
        apply_fields(user, payload.model_dump(exclude_unset=True))
        await self.db.commit()
        return user

    async def set_progress(self, user: User, progress: int) -> User:
        if progress < 0 or progress > settings.max_chapter:
            raise BadRequestError(f"Progress must be between 0 and {settings.max_chapter}")
        user.user_progress = progress
        await self.db.commit()
        return user

    async def submissions(self, user: User) -> dict:
        """Everything the user has submitted, whatever its moderation state."""
        out = {}
        for key, (model, author_col) in _SUBMISSION_SOURCES.items():
            result = await self.db.execute(
                select(model).where(author_col == user.id).order_by(model.created_at.desc(), model.id.desc())
            )
            out[key] = list(result.scalars().all())
        return out

    async def create(self, payload: AdminUserCreate) -> User:
        await AuthService(self.db).ensure_available(payload.username, payload.email)
        user = User(
            username=payload.username,
            email=payload.email,
            password_hash=hash_password(payload.password),
            role=payload.role.value,
            is_email_verified=payload.is_email_verified,
        )
        self.db.add(user)
        await self.db.commit()
        logger.info(f"Admin created user {user.id} ({user.username}, {user.role})")
        return user

    async def update(self, user_id: int, payload: AdminUserUpdate) -> User:
        user = await self.get(user_id)
        values = payload.model_dump(exclude_unset=True)
        if "username" in values or "email" in values:
            await AuthService(self.db).ensure_available(
                values.get("username", user.username), values.get("email", user.email), exclude_id=user_id,
            )
        if "user_progress" in values and values["user_progress"] > settings.max_chapter:
            raise BadRequestError(f"Progress must be between 0 and {settings.max_chapter}")
        apply_fields(user, values)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Username or email already in use")
        return await self.get(user_id)

    async def delete(self, user_id: int) -> None:
        user = await self.get(user_id)
        await self.db.delete(user)
        await self.db.commit()
        logger.info(f"Deleted user {user_id}")

    async def stats(self) -> dict:
        rows = (await self.db.execute(select(User.role, func.count()).group_by(User.role))).all()
        by_role = {role.value: 0 for role in UserRole}
        by_role.update({role: count for role, count in rows})
        verified = (await self.db.execute(
            select(func.count()).select_from(User).where(User.is_email_verified.is_(True))
        )).scalar_one()
        return {
            "total_users": sum(by_role.values()),
            "verified_users": verified,
            "moderators": by_role[UserRole.MODERATOR.value],
            "admins": by_role[UserRole.ADMIN.value],
            "users_by_role": by_role,
        }
