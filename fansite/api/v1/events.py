"""Event endpoints: browsing, submission and moderation."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.auth import (
    get_current_user, get_optional_user, require_admin_role, require_moderator,
)
from fansite.db import schemas
from fansite.db.database import get_db
from fansite.db.models import EventType, ModerationStatus, User
from fansite.services.event_service import EventFilters, EventService
from fansite.services.pagination import PageParams, page_params

router = APIRouter()
logger = logging.getLogger(__name__)


def event_filters(
    title: str | None = Query(default=None),
    arc: str | None = Query(default=None, description="Arc name (substring)"),
    arc_id: int | None = Query(default=None, alias="arcId"),
    description: str | None = Query(default=None),
    type: EventType | None = Query(default=None),
    character: str | None = Query(default=None, description="Character name (substring)"),
    status: ModerationStatus | None = Query(default=None, description="Moderators only"),
    user_progress: int | None = Query(default=None, alias="userProgress", ge=0),
) -> EventFilters:
    return EventFilters(
        title=title,
        arc=arc,
        arc_id=arc_id,
        description=description,
        type=type.value if type else None,
        character=character,
        status=status.value if status else None,
        user_progress=user_progress,
    )


@router.get("", response_model=schemas.Page[schemas.EventResponse])
async def list_events(
    params: PageParams = Depends(page_params),
    filters: EventFilters = Depends(event_filters),
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """
    List events.

    Public callers only ever see approved events. `userProgress` hides events
    whose spoiler chapter is beyond what the reader has read.
    """
    return await EventService(db).list(params, filters, user)


@router.get("/grouped/by-arc", response_model=schemas.EventsGroupedByArc)
async def events_grouped_by_arc(
    filters: EventFilters = Depends(event_filters),
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await EventService(db).grouped_by_arc(filters, user)


@router.get("/by-arc/{arc_id}", response_model=list[schemas.EventResponse])
async def events_by_arc(
    arc_id: int,
    user_progress: int | None = Query(default=None, alias="userProgress", ge=0),
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await EventService(db).by_arc(arc_id, user_progress, user)


@router.get("/by-chapter/{chapter_number}", response_model=list[schemas.EventResponse])
async def events_by_chapter(
    chapter_number: int,
    user_progress: int | None = Query(default=None, alias="userProgress", ge=0),
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await EventService(db).by_chapter(chapter_number, user_progress, user)


@router.get("/{event_id}", response_model=schemas.EventResponse)
async def get_event(
    event_id: int,
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await EventService(db).get(event_id, user)


@router.get("/{event_id}/visibility", response_model=schemas.EventVisibility)
async def event_visibility(
    event_id: int,
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Whether the event should be rendered blurred for the caller."""
    return await EventService(db).visibility(event_id, user)


@router.post("", response_model=schemas.EventResponse, status_code=201)
async def create_event(
    payload: schemas.EventCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await EventService(db).create(payload, user)


@router.put("/{event_id}", response_model=schemas.EventResponse, dependencies=[Depends(require_moderator)])
async def update_event(event_id: int, payload: schemas.EventUpdate, db: AsyncSession = Depends(get_db)):
    return await EventService(db).update(event_id, payload)


@router.patch("/{event_id}/own", response_model=schemas.EventResponse)
async def update_own_event(
    event_id: int,
    payload: schemas.EventOwnUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await EventService(db).update_own(event_id, payload, user)


@router.put("/{event_id}/approve", response_model=schemas.EventResponse)
async def approve_event(
    event_id: int,
    user: User = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
):
    event = await EventService(db).approve(event_id)
    logger.info(f"Event {event_id} approved by {user.username}")
    return event


@router.put("/{event_id}/reject", response_model=schemas.EventResponse)
async def reject_event(
    event_id: int,
    payload: schemas.RejectRequest | None = None,
    user: User = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
):
    event = await EventService(db).reject(event_id, payload.reason if payload else None)
    logger.info(f"Event {event_id} rejected by {user.username}")
    return event


@router.delete("/{event_id}", status_code=204, dependencies=[Depends(require_admin_role)])
async def delete_event(event_id: int, db: AsyncSession = Depends(get_db)):
    await EventService(db).delete(event_id)
