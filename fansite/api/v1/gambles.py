"""Gamble endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.auth import require_admin_role, require_moderator
from fansite.db import schemas
from fansite.db.database import get_db
from fansite.services.gamble_service import GambleService
from fansite.services.pagination import PageParams, page_params

router = APIRouter()


@router.get("", response_model=schemas.Page[schemas.GambleResponse])
async def list_gambles(
    params: PageParams = Depends(page_params),
    name: str | None = Query(default=None),
    character_id: int | None = Query(default=None, alias="characterId"),
    db: AsyncSession = Depends(get_db),
):
    return await GambleService(db).list(params, name=name, character_id=character_id)


@router.get("/{gamble_id}", response_model=schemas.GambleResponse)
async def get_gamble(gamble_id: int, db: AsyncSession = Depends(get_db)):
    return await GambleService(db).get(gamble_id)


@router.get("/{gamble_id}/events", response_model=list[schemas.EventResponse])
async def gamble_events(gamble_id: int, db: AsyncSession = Depends(get_db)):
    return await GambleService(db).events(gamble_id)


@router.post("", response_model=schemas.GambleResponse, status_code=201, dependencies=[Depends(require_moderator)])
async def create_gamble(payload: schemas.GambleCreate, db: AsyncSession = Depends(get_db)):
    return await GambleService(db).create(payload)


@router.put("/{gamble_id}", response_model=schemas.GambleResponse, dependencies=[Depends(require_moderator)])
async def update_gamble(gamble_id: int, payload: schemas.GambleUpdate, db: AsyncSession = Depends(get_db)):
    return await GambleService(db).update(gamble_id, payload)


@router.delete("/{gamble_id}", status_code=204, dependencies=[Depends(require_admin_role)])
async def delete_gamble(gamble_id: int, db: AsyncSession = Depends(get_db)):
    await GambleService(db).delete(gamble_id)
