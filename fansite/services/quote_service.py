"""Character quotes."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.db.models import Character, Quote
from fansite.db.schemas import QuoteCreate, QuoteUpdate
from fansite.services.common import apply_fields, ensure_exists, get_or_404
from fansite.services.pagination import PageParams, contains, paginate

SORT_FIELDS = {"id": Quote.id, "chapterNumber": Quote.chapter_number}


class QuoteService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(
        self,
        params: PageParams,
        search: str | None = None,
        character_id: int | None = None,
        chapter_number: int | None = None,
    ) -> dict:
        query = select(Quote)
        if search:
            query = query.where(contains(Quote.text, search))
        if character_id is not None:
            query = query.where(Quote.character_id == character_id)
        if chapter_number is not None:
            query = query.where(Quote.chapter_number == chapter_number)
        return await paginate(
            self.db, query, params, SORT_FIELDS,
            default_sort=[Quote.chapter_number.asc(), Quote.id.asc()],
        )

    async def get(self, quote_id: int) -> Quote:
        return await get_or_404(self.db, Quote, quote_id, "Quote")

    async def create(self, payload: QuoteCreate, user) -> Quote:
        await ensure_exists(self.db, Character, payload.character_id, "Character")
        quote = Quote(submitted_by_id=user.id)
        apply_fields(quote, payload.model_dump())
        self.db.add(quote)
        await self.db.commit()
        return await self.get(quote.id)

    async def update(self, quote_id: int, payload: QuoteUpdate) -> Quote:
        quote = await self.get(quote_id)
        values = payload.model_dump(exclude_unset=True)
        if "character_id" in values:
            await ensure_exists(self.db, Character, values["character_id"], "Character")
        apply_fields(quote, values)
        await self.db.commit()
        return await self.get(quote_id)

    async def delete(self, quote_id: int) -> None:
        quote = await self.get(quote_id)
        await self.db.delete(quote)
        await self.db.commit()
