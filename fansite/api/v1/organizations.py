"""Organization endpoints and character memberships."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.auth import get_optional_user, require_admin_role, require_moderator
from fansite.db import schemas
from fansite.db.database import get_db
from fansite.db.models import User
from fansite.services.organization_service import OrganizationService
from fansite.services.pagination import PageParams, page_params

router = APIRouter()


@router.get("", response_model=schemas.Page[schemas.OrganizationResponse])
async def list_organizations(
    params: PageParams = Depends(page_params),
    name: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    return await OrganizationService(db).list(params, name=name)


@router.get("/{org_id}", response_model=schemas.OrganizationDetail)
async def get_organization(
    org_id: int,
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Organization with the memberships the caller has read far enough to see."""
    return await OrganizationService(db).detail(org_id, user)


@router.post("", response_model=schemas.OrganizationResponse, status_code=201, dependencies=[Depends(require_moderator)])
async def create_organization(payload: schemas.OrganizationCreate, db: AsyncSession = Depends(get_db)):
    return await OrganizationService(db).create(payload)


@router.put("/{org_id}", response_model=schemas.OrganizationResponse, dependencies=[Depends(require_moderator)])
async def update_organization(org_id: int, payload: schemas.OrganizationUpdate, db: AsyncSession = Depends(get_db)):
    return await OrganizationService(db).update(org_id, payload)


@router.delete("/{org_id}", status_code=204, dependencies=[Depends(require_admin_role)])
async def delete_organization(org_id: int, db: AsyncSession = Depends(get_db)):
    await OrganizationService(db).delete(org_id)


@router.post(
    "/{org_id}/members",
    response_model=schemas.MembershipResponse,
    status_code=201,
    dependencies=[Depends(require_moderator)],
)
async def add_member(org_id: int, payload: schemas.MembershipCreate, db: AsyncSession = Depends(get_db)):
    return await OrganizationService(db).add_member(org_id, payload)


@router.delete("/{org_id}/members/{membership_id}", status_code=204, dependencies=[Depends(require_moderator)])
async def remove_member(org_id: int, membership_id: int, db: AsyncSession = Depends(get_db)):
    await OrganizationService(db).remove_member(org_id, membership_id)
