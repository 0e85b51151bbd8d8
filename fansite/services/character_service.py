"""Characters and everything hanging off them."""

from __future__ import annotations

import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.db.models import (
    Character, CharacterOrganization, Event, Gamble, Guide,
    ModerationStatus, Organization, Quote,
)
from fansite.db.schemas import CharacterCreate, CharacterUpdate
from fansite.services.common import apply_fields, get_or_404
from fansite.services.pagination import PageParams, contains, paginate

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "id": Character.id,
    "name": Character.name,
    "firstAppearanceChapter": Character.first_appearance_chapter,
}

APPROVED = ModerationStatus.APPROVED.value


class CharacterService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(
        self,
        params: PageParams,
        name: str | None = None,
        organization: str | None = None,
    ) -> dict:
        query = select(Character)
        if name:
            query = query.where(contains(Character.name, name))
        if organization:
            org_match = contains(Organization.name, organization)
            if organization.isdigit():
                org_match = or_(org_match, Organization.id == int(organization))
            query = query.where(
                Character.id.in_(
                    select(CharacterOrganization.character_id)
                    .join(Organization, Organization.id == CharacterOrganization.organization_id)
                    .where(org_match)
                )
            )
        return await paginate(self.db, query, params, SORT_FIELDS, default_sort=[Character.name.asc(), Character.id.asc()])

    async def get(self, character_id: int) -> Character:
        return await get_or_404(self.db, Character, character_id, "Character")

    async def create(self, payload: CharacterCreate) -> Character:
        character = Character()
        apply_fields(character, payload.model_dump())
        self.db.add(character)
        await self.db.commit()
        logger.info(f"Created character {character.id} ({character.name})")
        return character

    async def update(self, character_id: int, payload: CharacterUpdate) -> Character:
        character = await self.get(character_id)
        apply_fields(character, payload.model_dump(exclude_unset=True))
        await self.db.commit()
        return await self.get(character_id)

    async def delete(self, character_id: int) -> None:
        character = await self.get(character_id)
        await self.db.delete(character)
        await self.db.commit()

    async def events(self, character_id: int, params: PageParams, user_progress: int | None = None) -> dict:
        await self.get(character_id)
        query = select(Event).where(
            Event.status == APPROVED,
            Event.characters.any(Character.id == character_id),
        )
        if user_progress is not None:
            query = query.where(or_(Event.spoiler_chapter.is_(None), Event.spoiler_chapter <= user_progress))
        return await paginate(
            self.db, query, params, {"chapterNumber": Event.chapter_number, "id": Event.id},
            default_sort=[Event.chapter_number.asc(), Event.id.asc()],
        )

    async def gambles(self, character_id: int) -> list[Gamble]:
        await self.get(character_id)
        result = await self.db.execute(
            select(Gamble)
            .where(Gamble.participants.any(Character.id == character_id))
            .order_by(Gamble.chapter_number, Gamble.id)
        )
        return list(result.scalars().all())

    async def guides(self, character_id: int, params: PageParams) -> dict:
        await self.get(character_id)
        query = select(Guide).where(
            Guide.status == APPROVED,
            Guide.characters.any(Character.id == character_id),
        )
        return await paginate(self.db, query, params, {}, default_sort=[Guide.created_at.desc(), Guide.id.desc()])

    async def quotes(self, character_id: int, params: PageParams) -> dict:
        await self.get(character_id)
        query = select(Quote).where(Quote.character_id == character_id)
        return await paginate(self.db, query, params, {}, default_sort=[Quote.chapter_number.asc(), Quote.id.asc()])
