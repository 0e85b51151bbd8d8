"""Quote endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.auth import get_current_user, require_moderator
from fansite.db import schemas
from fansite.db.database import get_db
from fansite.db.models import User
from fansite.services.pagination import PageParams, page_params
from fansite.services.quote_service import QuoteService

router = APIRouter()


@router.get("", response_model=schemas.Page[schemas.QuoteResponse])
async def list_quotes(
    params: PageParams = Depends(page_params),
    search: str | None = Query(default=None),
    character_id: int | None = Query(default=None, alias="characterId"),
    chapter_number: int | None = Query(default=None, alias="chapterNumber", ge=1),
    db: AsyncSession = Depends(get_db),
):
    return await QuoteService(db).list(
        params, search=search, character_id=character_id, chapter_number=chapter_number,
    )


@router.get("/{quote_id}", response_model=schemas.QuoteResponse)
async def get_quote(quote_id: int, db: AsyncSession = Depends(get_db)):
    return await QuoteService(db).get(quote_id)


@router.post("", response_model=schemas.QuoteResponse, status_code=201)
async def create_quote(
    payload: schemas.QuoteCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await QuoteService(db).create(payload, user)


@router.put("/{quote_id}", response_model=schemas.QuoteResponse, dependencies=[Depends(require_moderator)])
async def update_quote(quote_id: int, payload: schemas.QuoteUpdate, db: AsyncSession = Depends(get_db)):
    return await QuoteService(db).update(quote_id, payload)


@router.delete("/{quote_id}", status_code=204, dependencies=[Depends(require_moderator)])
async def delete_quote(quote_id: int, db: AsyncSession = Depends(get_db)):
    await QuoteService(db).delete(quote_id)
