"""Authentication endpoints."""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.config import get_settings
from fansite.core.auth import get_current_user
from fansite.core.rate_limit import limiter
from fansite.db import schemas
from fansite.db.database import get_db
from fansite.db.models import User
from fansite.services.auth_service import AuthService

router = APIRouter()
settings = get_settings()


@router.post("/register", response_model=schemas.RegisterResponse, status_code=201)
@limiter.limit(settings.rate_limit_auth)
async def register(
    request: Request,
    payload: schemas.RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    """Create an unverified account and send the verification mail."""
    return await AuthService(db).register(payload)


@router.post("/login", response_model=schemas.TokenResponse)
@limiter.limit(settings.rate_limit_auth)
async def login(
    request: Request,
    payload: schemas.LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """Log in with username or email."""
    return await AuthService(db).login(payload.username, payload.password)


@router.post("/refresh", response_model=schemas.TokenResponse)
@limiter.limit(settings.rate_limit_auth)
async def refresh(
    request: Request,
    payload: schemas.RefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    return await AuthService(db).refresh(payload.refresh_token)


@router.post("/logout", response_model=schemas.MessageResponse)
async def logout(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AuthService(db).logout(user)
    return {"message": "Logged out"}


@router.get("/me", response_model=schemas.UserSelf)
async def me(user: User = Depends(get_current_user)):
    return user


@router.get("/verify-email", response_model=schemas.MessageResponse)
async def verify_email(
    token: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    await AuthService(db).verify_email(token)
    return {"message": "Email verified"}


@router.post("/password-reset/request", response_model=schemas.PasswordResetRequestResponse)
@limiter.limit(settings.rate_limit_auth)
async def request_password_reset(
    request: Request,
    payload: schemas.PasswordResetRequest,
    db: AsyncSession = Depends(get_db),
):
    return await AuthService(db).request_password_reset(payload.email)


@router.post("/password-reset/confirm", response_model=schemas.MessageResponse)
@limiter.limit(settings.rate_limit_auth)
async def confirm_password_reset(
    request: Request,
    payload: schemas.PasswordResetConfirm,
    db: AsyncSession = Depends(get_db),
):
    await AuthService(db).confirm_password_reset(payload)
    return {"message": "Password has been reset"}
