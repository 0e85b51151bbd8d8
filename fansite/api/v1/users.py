"""User endpoints: public profiles, own profile and admin management."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.auth import get_current_user, require_admin_role
from fansite.db import schemas
from fansite.db.database import get_db
from fansite.db.models import User, UserRole
from fansite.services.pagination import PageParams, page_params
from fansite.services.user_service import UserService

router = APIRouter()


@router.get("/public", response_model=schemas.Page[schemas.UserPublic])
async def list_public_users(
    params: PageParams = Depends(page_params),
    username: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    return await UserService(db).list(params, username=username)


@router.get("/public/{user_id}", response_model=schemas.PublicUserProfile)
async def get_public_profile(user_id: int, db: AsyncSession = Depends(get_db)):
    """Profile with active badges and approved submission counts."""
    return await UserService(db).public_profile(user_id)


@router.get("/profile", response_model=schemas.UserSelf)
async def get_profile(user: User = Depends(get_current_user)):
    return user


@router.patch("/profile", response_model=schemas.UserSelf)
async def update_profile(
    payload: schemas.ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await UserService(db).update_profile(user, payload)


@router.get("/profile/progress", response_model=schemas.ProgressResponse)
async def get_progress(user: User = Depends(get_current_user)):
    return {"user_progress": user.user_progress}


@router.put("/profile/progress", response_model=schemas.ProgressResponse)
async def set_progress(
    payload: schemas.ProgressUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService(db).set_progress(user, payload.user_progress)
    return {"user_progress": user.user_progress}


@router.get("/profile/submissions", response_model=schemas.UserSubmissions)
async def my_submissions(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await UserService(db).submissions(user)


# ==================== Admin ====================

@router.get("/stats", response_model=schemas.UserStats, dependencies=[Depends(require_admin_role)])
async def user_stats(db: AsyncSession = Depends(get_db)):
    return await UserService(db).stats()


@router.get("", response_model=schemas.Page[schemas.UserSelf], dependencies=[Depends(require_admin_role)])
async def list_users(
    params: PageParams = Depends(page_params),
    username: str | None = Query(default=None),
    role: UserRole | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    return await UserService(db).list(params, username=username, role=role.value if role else None)


@router.post("", response_model=schemas.UserSelf, status_code=201, dependencies=[Depends(require_admin_role)])
async def create_user(payload: schemas.AdminUserCreate, db: AsyncSession = Depends(get_db)):
    return await UserService(db).create(payload)


@router.get("/{user_id}", response_model=schemas.UserSelf, dependencies=[Depends(require_admin_role)])
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)):
    return await UserService(db).get(user_id)


@router.patch("/{user_id}", response_model=schemas.UserSelf, dependencies=[Depends(require_admin_role)])
async def update_user(user_id: int, payload: schemas.AdminUserUpdate, db: AsyncSession = Depends(get_db)):
    return await UserService(db).update(user_id, payload)


@router.delete("/{user_id}", status_code=204, dependencies=[Depends(require_admin_role)])
async def delete_user(user_id: int, db: AsyncSession = Depends(get_db)):
    await UserService(db).delete(user_id)
