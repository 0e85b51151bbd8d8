"""Landing-page counts."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.cache import get_cache
from fansite.db.models import (
    Arc, Chapter, Character, Event, Gamble, Guide, ModerationStatus,
    Organization, Quote, User, Volume,
)

logger = logging.getLogger(__name__)

APPROVED = ModerationStatus.APPROVED.value


class StatsService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.cache = get_cache()

    async def _count(self, model, *conditions) -> int:
        result = await self.db.execute(select(func.count()).select_from(model).where(*conditions))
        return result.scalar_one_or_none() or 0

    async def landing(self) -> dict:
        key = self.cache.stats_key()
        cached = await self.cache.get(key)
        if cached is not None:
            return cached

        stats = {
            "characters": await self._count(Character),
            "arcs": await self._count(Arc),
            "chapters": await self._count(Chapter),
            "volumes": await self._count(Volume),
            "events": await self._count(Event, Event.status == APPROVED),
            "gambles": await self._count(Gamble),
            "organizations": await self._count(Organization),
            "guides": await self._count(Guide, Guide.status == APPROVED),
            "quotes": await self._count(Quote),
            "users": await self._count(User),
        }
        await self.cache.set(key, stats)
        return stats
