"""
Events: the story beats readers browse, filter by progress and submit.

Anyone signed in may submit an event; it stays pending until a moderator
approves it. Public listings only ever show approved rows, and a `userProgress`
filter drops events whose spoiler chapter lies beyond what the reader has read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.auth import is_moderator
from fansite.core.cache import get_cache
from fansite.core.errors import ForbiddenError, NotFoundError
from fansite.db.models import (
    Arc, Character, Event, Gamble, ModerationStatus, Tag, User,
)
from fansite.db.schemas import EventCreate, EventOwnUpdate, EventUpdate
from fansite.services import spoilers, timeline
from fansite.services.common import apply_fields, ensure_exists, get_or_404, load_many
from fansite.services.pagination import PageParams, contains, paginate

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "id": Event.id,
    "title": Event.title,
    "description": Event.description,
    "chapterNumber": Event.chapter_number,
    "type": Event.type,
}

APPROVED = ModerationStatus.APPROVED.value
PENDING = ModerationStatus.PENDING.value
REJECTED = ModerationStatus.REJECTED.value

_RELATION_KEYS = ("character_ids", "tag_ids")


@dataclass
class EventFilters:
    title: str | None = None
    arc: str | None = None
    arc_id: int | None = None
    description: str | None = None
    type: str | None = None
    character: str | None = None
    status: str | None = None
    user_progress: int | None = None


def progress_filter(user_progress: int):
    """SQL twin of spoilers.is_viewable."""
    return or_(Event.spoiler_chapter.is_(None), Event.spoiler_chapter <= user_progress)


class EventService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.cache = get_cache()

    def _visible(self, query, viewer: User | None, status: str | None = None):
        # Moderators may browse any status; everyone else sees approved rows only
        if is_moderator(viewer):
            return query.where(Event.status == status) if status else query
        return query.where(Event.status == APPROVED)

    def _apply_filters(self, query, filters: EventFilters):
        if filters.title:
            query = query.where(contains(Event.title, filters.title))
        if filters.arc:
            query = query.where(Event.arc.has(contains(Arc.name, filters.arc)))
        if filters.arc_id is not None:
            query = query.where(Event.arc_id == filters.arc_id)
        if filters.description:
            query = query.where(contains(Event.description, filters.description))
        if filters.type:
            query = query.where(Event.type == filters.type)
        if filters.character:
            query = query.where(
                or_(
                    Event.characters.any(contains(Character.name, filters.character)),
                    Event.gamble.has(Gamble.participants.any(contains(Character.name, filters.character))),
                )
            )
        if filters.user_progress is not None:
            query = query.where(progress_filter(filters.user_progress))
        return query

    async def list(self, params: PageParams, filters: EventFilters, viewer: User | None = None) -> dict:
        query = self._visible(select(Event), viewer, filters.status)
        query = self._apply_filters(query, filters)
        return await paginate(
            self.db, query, params, SORT_FIELDS,
            default_sort=[Event.chapter_number.asc(), Event.id.asc()],
        )

    async def grouped_by_arc(self, filters: EventFilters, viewer: User | None = None) -> dict:
        query = self._apply_filters(self._visible(select(Event), viewer, filters.status), filters)
        result = await self.db.execute(query.order_by(Event.chapter_number, Event.id))
        return timeline.group_events_by_arc(result.scalars().all())

    async def by_arc(self, arc_id: int, user_progress: int | None = None, viewer: User | None = None) -> list[Event]:
        await get_or_404(self.db, Arc, arc_id, "Arc")
        query = self._visible(select(Event).where(Event.arc_id == arc_id), viewer)
        if user_progress is not None:
            query = query.where(progress_filter(user_progress))
        result = await self.db.execute(query.order_by(Event.chapter_number, Event.id))
        return list(result.scalars().all())

    async def by_chapter(self, chapter_number: int, user_progress: int | None = None, viewer: User | None = None) -> list[Event]:
        query = self._visible(select(Event).where(Event.chapter_number == chapter_number), viewer)
        if user_progress is not None:
            query = query.where(progress_filter(user_progress))
        result = await self.db.execute(query.order_by(Event.id))
        return list(result.scalars().all())

    async def get(self, event_id: int, viewer: User | None = None) -> Event:
        """Fetch an event; unapproved ones are only visible to their author and moderators."""
        event = await get_or_404(self.db, Event, event_id, "Event")
        if event.status != APPROVED and not is_moderator(viewer):
            if viewer is None or event.created_by_id != viewer.id:
                raise NotFoundError(f"Event with id {event_id} not found")
        return event

    async def visibility(self, event_id: int, viewer: User | None = None) -> dict:
        """Whether the event should be shown blurred to this viewer."""
        event = await self.get(event_id, viewer)
        progress, settings = spoilers.settings_for_user(viewer)
        effective = spoilers.effective_progress(progress, settings)
        chapter = event.spoiler_chapter or event.chapter_number
        hidden = spoilers.should_hide_spoiler(chapter, progress, settings)
        return {
            "event_id": event.id,
            "chapter_number": chapter,
            "effective_progress": effective,
            "hidden": hidden,
            "label": spoilers.spoiler_label(chapter, effective) if hidden else None,
        }

    async def _apply_relations(self, event: Event, values: dict) -> None:
        if "arc_id" in values:
            await ensure_exists(self.db, Arc, values["arc_id"], "Arc")
        if "gamble_id" in values:
            await ensure_exists(self.db, Gamble, values["gamble_id"], "Gamble")
        if values.get("character_ids") is not None:
            event.characters = await load_many(self.db, Character, values["character_ids"], "Character")
        if values.get("tag_ids") is not None:
            event.tags = await load_many(self.db, Tag, values["tag_ids"], "Tag")

    async def _invalidate(self) -> None:
        await self.cache.flush_pattern("arc:timeline:*")
        await self.cache.delete(self.cache.stats_key())

    async def create(self, payload: EventCreate, user: User) -> Event:
        values = payload.model_dump()
        event = Event(
            status=PENDING,
            created_by_id=user.id,
            characters=[],
            tags=[],
        )
        await self._apply_relations(event, values)
        apply_fields(event, {k: v for k, v in values.items() if k not in _RELATION_KEYS})
        self.db.add(event)
        await self.db.commit()
        logger.info(f"Event {event.id} submitted by user {user.id} (chapter {event.chapter_number})")
        return await get_or_404(self.db, Event, event.id, "Event")

    async def update(self, event_id: int, payload: EventUpdate) -> Event:
        event = await get_or_404(self.db, Event, event_id, "Event")
        values = payload.model_dump(exclude_unset=True)
        await self._apply_relations(event, values)
        apply_fields(event, {k: v for k, v in values.items() if k not in _RELATION_KEYS})
        await self.db.commit()
        await self._invalidate()
        return await get_or_404(self.db, Event, event_id, "Event")

    async def update_own(self, event_id: int, payload: EventOwnUpdate, user: User) -> Event:
        """Author edits of a not-yet-approved submission; the edit re-enters moderation."""
        event = await get_or_404(self.db, Event, event_id, "Event")
        if event.created_by_id != user.id:
            raise ForbiddenError("You can only edit your own submissions")
        if event.status == APPROVED:
            raise ForbiddenError("Approved submissions can no longer be edited")

        values = payload.model_dump(exclude_unset=True)
        await self._apply_relations(event, values)
        apply_fields(event, {k: v for k, v in values.items() if k not in _RELATION_KEYS})
        event.status = PENDING
        event.rejection_reason = None
        await self.db.commit()
        return await get_or_404(self.db, Event, event_id, "Event")

    async def approve(self, event_id: int) -> Event:
        event = await get_or_404(self.db, Event, event_id, "Event")
        event.status = APPROVED
        event.rejection_reason = None
        await self.db.commit()
        await self._invalidate()
        logger.info(f"Event {event_id} approved")
        return await get_or_404(self.db, Event, event_id, "Event")

    async def reject(self, event_id: int, reason: str | None = None) -> Event:
        event = await get_or_404(self.db, Event, event_id, "Event")
        event.status = REJECTED
        event.rejection_reason = reason
        await self.db.commit()
        await self._invalidate()
        logger.info(f"Event {event_id} rejected")
        return await get_or_404(self.db, Event, event_id, "Event")

    async def delete(self, event_id: int) -> None:
        event = await get_or_404(self.db, Event, event_id, "Event")
        await self.db.delete(event)
        await self.db.commit()
        await self._invalidate()
