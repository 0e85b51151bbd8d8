"""Landing page statistics."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.db import schemas
from fansite.db.database import get_db
from fansite.services.stats_service import StatsService

router = APIRouter()


@router.get("", response_model=schemas.StatsResponse)
async def landing_stats(db: AsyncSession = Depends(get_db)):
    return await StatsService(db).landing()
