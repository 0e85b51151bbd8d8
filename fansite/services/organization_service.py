"""Organizations and character memberships."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.auth import is_moderator
from fansite.core.errors import ConflictError, NotFoundError
from fansite.db.models import Character, CharacterOrganization, Organization
from fansite.db.schemas import (
    MembershipCreate, OrganizationCreate, OrganizationDetail,
    OrganizationResponse, OrganizationUpdate, MembershipResponse,
)
from fansite.services import spoilers
from fansite.services.common import apply_fields, ensure_exists, get_or_404
from fansite.services.pagination import PageParams, contains, paginate

logger = logging.getLogger(__name__)

SORT_FIELDS = {"id": Organization.id, "name": Organization.name}


class OrganizationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self, params: PageParams, name: str | None = None) -> dict:
        query = select(Organization)
        if name:
            query = query.where(contains(Organization.name, name))
        return await paginate(self.db, query, params, SORT_FIELDS, default_sort=[Organization.name.asc()])

    async def get(self, org_id: int) -> Organization:
        return await get_or_404(self.db, Organization, org_id, "Organization")

    async def detail(self, org_id: int, viewer=None) -> OrganizationDetail:
        """Organization with the members the viewer has read far enough to know about."""
        org = await self.get(org_id)
        memberships = sorted(org.memberships, key=lambda m: (m.start_chapter, m.id))
        if not is_moderator(viewer):
            progress, settings = spoilers.settings_for_user(viewer)
            memberships = [
                m for m in memberships
                if not spoilers.should_hide_spoiler(m.spoiler_chapter, progress, settings)
            ]
        return OrganizationDetail(
            **OrganizationResponse.model_validate(org).model_dump(),
            members=[MembershipResponse.model_validate(m) for m in memberships],
        )

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Organization name or membership already exists")

    async def create(self, payload: OrganizationCreate) -> Organization:
        org = Organization(name=payload.name, description=payload.description)
        self.db.add(org)
        await self._commit()
        return await self.get(org.id)

    async def update(self, org_id: int, payload: OrganizationUpdate) -> Organization:
        org = await self.get(org_id)
        apply_fields(org, payload.model_dump(exclude_unset=True))
        await self._commit()
        return await self.get(org_id)

    async def delete(self, org_id: int) -> None:
        org = await self.get(org_id)
        await self.db.delete(org)
        await self.db.commit()

    async def add_member(self, org_id: int, payload: MembershipCreate) -> CharacterOrganization:
        await self.get(org_id)
        await ensure_exists(self.db, Character, payload.character_id, "Character")
        membership = CharacterOrganization(organization_id=org_id)
        apply_fields(membership, payload.model_dump())
        self.db.add(membership)
        await self._commit()
        logger.info(f"Added character {payload.character_id} to organization {org_id} as {payload.role}")
        return await get_or_404(self.db, CharacterOrganization, membership.id, "Membership")

    async def remove_member(self, org_id: int, membership_id: int) -> None:
        membership = await self.db.get(CharacterOrganization, membership_id)
        if membership is None or membership.organization_id != org_id:
            raise NotFoundError(f"Membership {membership_id} not found in organization {org_id}")
        await self.db.delete(membership)
        await self.db.commit()
