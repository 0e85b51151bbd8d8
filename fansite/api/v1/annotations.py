"""Annotation endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.auth import get_current_user, get_optional_user, require_moderator
from fansite.db import schemas
from fansite.db.database import get_db
from fansite.db.models import AnnotationOwnerType, User
from fansite.services.annotation_service import AnnotationService
from fansite.services.pagination import PageParams, page_params

router = APIRouter()


@router.get("/my", response_model=schemas.Page[schemas.AnnotationResponse])
async def my_annotations(
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AnnotationService(db).list_mine(params, user)


@router.get("/pending", response_model=schemas.Page[schemas.AnnotationResponse], dependencies=[Depends(require_moderator)])
async def pending_annotations(
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
):
    return await AnnotationService(db).list_pending(params)


@router.get("/chapter/{chapter_number}", response_model=schemas.Page[schemas.AnnotationResponse])
async def annotations_for_chapter(
    chapter_number: int,
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
):
    """Approved annotations that reference the chapter or are attached to it."""
    return await AnnotationService(db).for_chapter(chapter_number, params)


@router.get("/{owner_type}/{owner_id}", response_model=schemas.Page[schemas.AnnotationResponse])
async def annotations_for_owner(
    owner_type: AnnotationOwnerType,
    owner_id: int,
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
):
    return await AnnotationService(db).for_owner(owner_type.value, owner_id, params)


@router.get("/{annotation_id}", response_model=schemas.AnnotationResponse)
async def get_annotation(
    annotation_id: int,
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await AnnotationService(db).get(annotation_id, user)


@router.post("", response_model=schemas.AnnotationResponse, status_code=201)
async def create_annotation(
    payload: schemas.AnnotationCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AnnotationService(db).create(payload, user)


@router.patch("/{annotation_id}", response_model=schemas.AnnotationResponse)
async def update_annotation(
    annotation_id: int,
    payload: schemas.AnnotationUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AnnotationService(db).update(annotation_id, payload, user)


@router.delete("/{annotation_id}", status_code=204)
async def delete_annotation(
    annotation_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AnnotationService(db).delete(annotation_id, user)


@router.put("/{annotation_id}/approve", response_model=schemas.AnnotationResponse, dependencies=[Depends(require_moderator)])
async def approve_annotation(annotation_id: int, db: AsyncSession = Depends(get_db)):
    return await AnnotationService(db).approve(annotation_id)


@router.put("/{annotation_id}/reject", response_model=schemas.AnnotationResponse, dependencies=[Depends(require_moderator)])
async def reject_annotation(
    annotation_id: int,
    payload: schemas.RejectRequest | None = None,
    db: AsyncSession = Depends(get_db),
):
    return await AnnotationService(db).reject(annotation_id, payload.reason if payload else None)
