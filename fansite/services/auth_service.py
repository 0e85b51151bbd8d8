"""
Registration, login, token refresh, email verification and password reset.

Addresses on the configured test domain never receive mail; their
verification and reset tokens are returned in the response instead.
"""

import logging
from datetime import timedelta

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.config import get_settings
from fansite.core.errors import BadRequestError, ConflictError, UnauthorizedError
from fansite.core.security import (
    create_access_token, generate_opaque_token, hash_password, verify_password,
)
from fansite.db.database import async_session
from fansite.db.models import User, UserRole, utcnow
from fansite.db.schemas import PasswordResetConfirm, RegisterRequest
from fansite.services.email_service import EmailService, send_in_background

logger = logging.getLogger(__name__)
settings = get_settings()

INVALID_RESET_TOKEN = "Invalid or expired token"


def is_test_address(email: str) -> bool:
    domain = settings.test_email_domain
    return bool(domain) and email.lower().endswith("@" + domain.lower())


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.email = EmailService()

    async def ensure_available(self, username: str, email: str, exclude_id: int | None = None) -> None:
        query = select(User.username, User.email).where(
            or_(func.lower(User.username) == username.lower(), User.email == email.lower())
        )
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        row = (await self.db.execute(query)).first()
        if row is None:
            return
        if row.username.lower() == username.lower():
            raise ConflictError("Username already taken")
        raise ConflictError("Email already registered")

    async def register(self, payload: RegisterRequest) -> dict:
        await self.ensure_available(payload.username, payload.email)
        token = generate_opaque_token()
        user = User(
            username=payload.username,
            email=payload.email,
            password_hash=hash_password(payload.password),
            role=UserRole.USER.value,
            is_email_verified=False,
            email_verification_token=token,
        )
        self.db.add(user)
        await self.db.commit()
        logger.info(f"Registered user {user.id} ({user.username})")

        if is_test_address(user.email):
            return {"message": "Registration successful", "user": user, "verification_token": token}

        send_in_background(self.email.send_verification(user.email, token), name=f"verify-mail:{user.id}")
        return {"message": "Registration successful. Check your email to verify your account.", "user": user}

    async def _issue_tokens(self, user: User) -> dict:
        user.refresh_token = generate_opaque_token()
        user.refresh_token_expires_at = utcnow() + timedelta(days=settings.refresh_token_ttl_days)
        await self.db.commit()
        return {
            "access_token": create_access_token(user.id, user.role),
            "refresh_token": user.refresh_token,
            "user": user,
        }

    async def login(self, username_or_email: str, password: str) -> dict:
        ident = username_or_email.strip()
        result = await self.db.execute(
            select(User).where(
                or_(func.lower(User.username) == ident.lower(), User.email == ident.lower())
            )
        )
        user = result.scalar_one_or_none()
        if user is None or not verify_password(user.password_hash, password):
            raise UnauthorizedError("Invalid credentials")
        if not user.is_email_verified:
            raise UnauthorizedError("Email not verified")
        logger.info(f"User {user.id} logged in")
        return await self._issue_tokens(user)

    async def refresh(self, refresh_token: str) -> dict:
        result = await self.db.execute(select(User).where(User.refresh_token == refresh_token))
        user = result.scalar_one_or_none()
        if user is None or user.refresh_token_expires_at is None or user.refresh_token_expires_at < utcnow():
            raise UnauthorizedError("Invalid or expired refresh token")
        return await self._issue_tokens(user)

    async def logout(self, user: User) -> None:
        user.refresh_token = None
        user.refresh_token_expires_at = None
        await self.db.commit()

    async def verify_email(self, token: str) -> User:
        result = await self.db.execute(select(User).where(User.email_verification_token == token))
        user = result.scalar_one_or_none()
        if user is None:
            raise BadRequestError("Invalid verification token")
        user.is_email_verified = True
        user.email_verification_token = None
        await self.db.commit()
        logger.info(f"User {user.id} verified their email")
        return user

    async def request_password_reset(self, email: str) -> dict:
        message = "If that address is registered, a reset link has been sent."
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        user = result.scalar_one_or_none()
        if user is None:
            return {"message": message}

        token = generate_opaque_token()
        user.password_reset_token = token
        user.password_reset_expires = utcnow() + timedelta(minutes=settings.password_reset_ttl_minutes)
        await self.db.commit()

        if is_test_address(user.email):
            return {"message": message, "reset_token": token}
        send_in_background(self.email.send_password_reset(user.email, token), name=f"reset-mail:{user.id}")
        return {"message": message}

    async def confirm_password_reset(self, payload: PasswordResetConfirm) -> None:
        result = await self.db.execute(select(User).where(User.password_reset_token == payload.token))
        user = result.scalar_one_or_none()
        if user is None or user.password_reset_expires is None or user.password_reset_expires < utcnow():
            raise BadRequestError(INVALID_RESET_TOKEN)
        user.password_hash = hash_password(payload.new_password)
        user.password_reset_token = None
        user.password_reset_expires = None
        # Sign out other sessions
        user.refresh_token = None
        user.refresh_token_expires_at = None
        await self.db.commit()
        logger.info(f"User {user.id} reset their password")


async def cleanup_expired_tokens() -> int:
    """Clear expired refresh and password-reset tokens. Scheduled hourly."""
    now = utcnow()
    async with async_session() as db:
        refresh = await db.execute(
            update(User)
            .where(User.refresh_token_expires_at.is_not(None), User.refresh_token_expires_at < now)
            .values(refresh_token=None, refresh_token_expires_at=None)
        )
        reset = await db.execute(
            update(User)
            .where(User.password_reset_expires.is_not(None), User.password_reset_expires < now)
            .values(password_reset_token=None, password_reset_expires=None)
        )
        await db.commit()
    cleared = (refresh.rowcount or 0) + (reset.rowcount or 0)
    if cleared:
        logger.info(f"Token cleanup: cleared {cleared} expired tokens")
    return cleared
