"""Arc endpoints, including the narrative timeline."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.auth import get_optional_user, require_admin_role, require_moderator
from fansite.db import schemas
from fansite.db.database import get_db
from fansite.db.models import User
from fansite.services.arc_service import ArcService
from fansite.services.pagination import PageParams, page_params

router = APIRouter()


@router.get("", response_model=schemas.Page[schemas.ArcResponse])
async def list_arcs(
    params: PageParams = Depends(page_params),
    name: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    return await ArcService(db).list(params, name=name)


@router.get("/{arc_id}", response_model=schemas.ArcResponse)
async def get_arc(arc_id: int, db: AsyncSession = Depends(get_db)):
    return await ArcService(db).get(arc_id)


@router.get("/{arc_id}/chapters", response_model=list[schemas.ChapterSummary])
async def arc_chapters(arc_id: int, db: AsyncSession = Depends(get_db)):
    return await ArcService(db).chapters(arc_id)


@router.get("/{arc_id}/events", response_model=list[schemas.EventResponse])
async def arc_events(
    arc_id: int,
    user_progress: int | None = Query(default=None, alias="userProgress", ge=0),
    db: AsyncSession = Depends(get_db),
):
    return await ArcService(db).events(arc_id, user_progress)


@router.get("/{arc_id}/timeline", response_model=schemas.ArcTimelineResponse)
async def arc_timeline(
    arc_id: int,
    event_types: list[str] | None = Query(default=None, alias="eventTypes"),
    characters: list[str] | None = Query(default=None),
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Events of the arc grouped into narrative units and transitions.

    Spoiler flags are computed for the caller: anonymous readers are treated
    as having read nothing.
    """
    return await ArcService(db).timeline(arc_id, user, event_types, characters)


@router.post("", response_model=schemas.ArcResponse, status_code=201, dependencies=[Depends(require_moderator)])
async def create_arc(payload: schemas.ArcCreate, db: AsyncSession = Depends(get_db)):
    return await ArcService(db).create(payload)


@router.put("/{arc_id}", response_model=schemas.ArcResponse, dependencies=[Depends(require_moderator)])
async def update_arc(arc_id: int, payload: schemas.ArcUpdate, db: AsyncSession = Depends(get_db)):
    return await ArcService(db).update(arc_id, payload)


@router.delete("/{arc_id}", status_code=204, dependencies=[Depends(require_admin_role)])
async def delete_arc(arc_id: int, db: AsyncSession = Depends(get_db)):
    await ArcService(db).delete(arc_id)
