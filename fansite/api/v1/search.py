"""Site-wide search endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.db import schemas
from fansite.db.database import get_db
from fansite.services.pagination import PageParams, page_params
from fansite.services.search_service import SearchService

router = APIRouter()


@router.get("", response_model=schemas.Page[schemas.SearchResult])
async def search(
    query: str = Query(..., min_length=1, max_length=200),
    content_type: str | None = Query(default=None, alias="type"),
    user_progress: int | None = Query(default=None, alias="userProgress", ge=0),
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
):
    """
    Case-insensitive substring search over characters, arcs, events, gambles,
    guides and organizations.

    Only approved events and guides are searched, and events beyond the
    reader's `userProgress` are left out.
    """
    return await SearchService(db).search(query, params, content_type, user_progress)


@router.get("/suggestions", response_model=list[str])
async def suggestions(
    query: str = Query(..., min_length=1, max_length=200),
    db: AsyncSession = Depends(get_db),
):
    return await SearchService(db).suggestions(query)


@router.get("/content-types", response_model=list[schemas.ContentType])
async def content_types():
    return SearchService.content_types()
