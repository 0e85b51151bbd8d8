"""Character endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.auth import require_admin_role, require_moderator
from fansite.db import schemas
from fansite.db.database import get_db
from fansite.services.arc_service import ArcService
from fansite.services.character_service import CharacterService
from fansite.services.pagination import PageParams, page_params

router = APIRouter()


@router.get("", response_model=schemas.Page[schemas.CharacterResponse])
async def list_characters(
    params: PageParams = Depends(page_params),
    name: str | None = Query(default=None),
    organization: str | None = Query(default=None, description="Organization name or id"),
    db: AsyncSession = Depends(get_db),
):
    return await CharacterService(db).list(params, name=name, organization=organization)


@router.get("/{character_id}", response_model=schemas.CharacterResponse)
async def get_character(character_id: int, db: AsyncSession = Depends(get_db)):
    return await CharacterService(db).get(character_id)


@router.get("/{character_id}/events", response_model=schemas.Page[schemas.EventResponse])
async def character_events(
    character_id: int,
    params: PageParams = Depends(page_params),
    user_progress: int | None = Query(default=None, alias="userProgress", ge=0),
    db: AsyncSession = Depends(get_db),
):
    return await CharacterService(db).events(character_id, params, user_progress)


@router.get("/{character_id}/gambles", response_model=list[schemas.GambleResponse])
async def character_gambles(character_id: int, db: AsyncSession = Depends(get_db)):
    return await CharacterService(db).gambles(character_id)


@router.get("/{character_id}/guides", response_model=schemas.Page[schemas.GuideResponse])
async def character_guides(
    character_id: int,
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
):
    return await CharacterService(db).guides(character_id, params)


@router.get("/{character_id}/quotes", response_model=schemas.Page[schemas.QuoteResponse])
async def character_quotes(
    character_id: int,
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
):
    return await CharacterService(db).quotes(character_id, params)


@router.get("/{character_id}/arcs", response_model=list[schemas.ArcResponse])
async def character_arcs(character_id: int, db: AsyncSession = Depends(get_db)):
    """Arcs in which the character takes part in an approved event."""
    return await ArcService(db).arcs_for_character(character_id)


@router.post("", response_model=schemas.CharacterResponse, status_code=201, dependencies=[Depends(require_moderator)])
async def create_character(payload: schemas.CharacterCreate, db: AsyncSession = Depends(get_db)):
    return await CharacterService(db).create(payload)


@router.put("/{character_id}", response_model=schemas.CharacterResponse, dependencies=[Depends(require_moderator)])
async def update_character(character_id: int, payload: schemas.CharacterUpdate, db: AsyncSession = Depends(get_db)):
    return await CharacterService(db).update(character_id, payload)


@router.delete("/{character_id}", status_code=204, dependencies=[Depends(require_admin_role)])
async def delete_character(character_id: int, db: AsyncSession = Depends(get_db)):
    await CharacterService(db).delete(character_id)
