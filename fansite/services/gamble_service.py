"""Gambles and their participants."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.db.models import Character, Event, Gamble, ModerationStatus
from fansite.db.schemas import GambleCreate, GambleUpdate
from fansite.services.common import apply_fields, get_or_404, load_many
from fansite.services.pagination import PageParams, contains, paginate

logger = logging.getLogger(__name__)

SORT_FIELDS = {"id": Gamble.id, "name": Gamble.name, "chapterNumber": Gamble.chapter_number}


class GambleService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self, params: PageParams, name: str | None = None, character_id: int | None = None) -> dict:
        query = select(Gamble)
        if name:
            query = query.where(contains(Gamble.name, name))
        if character_id is not None:
            query = query.where(Gamble.participants.any(Character.id == character_id))
        return await paginate(
            self.db, query, params, SORT_FIELDS,
            default_sort=[Gamble.chapter_number.asc().nulls_last(), Gamble.id.asc()],
        )

    async def get(self, gamble_id: int) -> Gamble:
        return await get_or_404(self.db, Gamble, gamble_id, "Gamble")

    async def create(self, payload: GambleCreate) -> Gamble:
        gamble = Gamble()
        apply_fields(gamble, payload.model_dump(exclude={"participant_ids"}))
        gamble.participants = await load_many(self.db, Character, payload.participant_ids, "Character")
        self.db.add(gamble)
        await self.db.commit()
        logger.info(f"Created gamble {gamble.id} ({gamble.name})")
        return await self.get(gamble.id)

    async def update(self, gamble_id: int, payload: GambleUpdate) -> Gamble:
        gamble = await self.get(gamble_id)
        values = payload.model_dump(exclude_unset=True)
        participant_ids = values.pop("participant_ids", None)
        apply_fields(gamble, values)
        if participant_ids is not None:
            gamble.participants = await load_many(self.db, Character, participant_ids, "Character")
        await self.db.commit()
        return await self.get(gamble_id)

    async def delete(self, gamble_id: int) -> None:
        gamble = await self.get(gamble_id)
        await self.db.delete(gamble)
        await self.db.commit()

    async def events(self, gamble_id: int) -> list[Event]:
        await self.get(gamble_id)
        result = await self.db.execute(
            select(Event)
            .where(Event.gamble_id == gamble_id, Event.status == ModerationStatus.APPROVED.value)
            .order_by(Event.chapter_number, Event.id)
        )
        return list(result.scalars().all())
