"""Arcs: CRUD, chapter/event listings and the grouped timeline."""

from __future__ import annotations

import logging
from dataclasses import asdict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.cache import get_cache
from fansite.core.errors import BadRequestError
from fansite.db.models import Arc, Chapter, Character, Event, ModerationStatus, Series
from fansite.db.schemas import ArcCreate, ArcUpdate
from fansite.services import spoilers, timeline
from fansite.services.common import apply_fields, ensure_exists, get_or_404
from fansite.services.pagination import PageParams, contains, paginate

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "id": Arc.id,
    "name": Arc.name,
    "order": Arc.order,
    "startChapter": Arc.start_chapter,
}


def _check_range(start: int | None, end: int | None) -> None:
    if start is not None and end is not None and start > end:
        raise BadRequestError("startChapter must not be greater than endChapter")


class ArcService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.cache = get_cache()

    async def list(self, params: PageParams, name: str | None = None) -> dict:
        query = select(Arc)
        if name:
            query = query.where(contains(Arc.name, name))
        return await paginate(
            self.db, query, params, SORT_FIELDS,
            default_sort=[Arc.order.asc(), Arc.id.asc()],
        )

    async def get(self, arc_id: int) -> Arc:
        return await get_or_404(self.db, Arc, arc_id, "Arc")

    async def create(self, payload: ArcCreate) -> Arc:
        _check_range(payload.start_chapter, payload.end_chapter)
        await ensure_exists(self.db, Series, payload.series_id, "Series")
        arc = Arc()
        apply_fields(arc, payload.model_dump())
        self.db.add(arc)
        await self.db.commit()
        logger.info(f"Created arc {arc.id} ({arc.name})")
        return arc

    async def update(self, arc_id: int, payload: ArcUpdate) -> Arc:
        arc = await self.get(arc_id)
        values = payload.model_dump(exclude_unset=True)
        _check_range(values.get("start_chapter", arc.start_chapter), values.get("end_chapter", arc.end_chapter))
        if "series_id" in values:
            await ensure_exists(self.db, Series, values["series_id"], "Series")
        apply_fields(arc, values)
        await self.db.commit()
        await self.cache.delete(self.cache.arc_timeline_key(arc_id))
        return await self.get(arc_id)

    async def delete(self, arc_id: int) -> None:
        arc = await self.get(arc_id)
        await self.db.delete(arc)
        await self.db.commit()
        await self.cache.delete(self.cache.arc_timeline_key(arc_id))
        logger.info(f"Deleted arc {arc_id}")

    async def chapters(self, arc_id: int) -> list[Chapter]:
        arc = await self.get(arc_id)
        if arc.start_chapter is None or arc.end_chapter is None:
            return []
        result = await self.db.execute(
            select(Chapter)
            .where(Chapter.number.between(arc.start_chapter, arc.end_chapter))
            .order_by(Chapter.number)
        )
        return list(result.scalars().all())

    async def events(self, arc_id: int, user_progress: int | None = None) -> list[Event]:
        """Approved events of an arc in chapter order."""
        await self.get(arc_id)
        query = (
            select(Event)
            .where(Event.arc_id == arc_id, Event.status == ModerationStatus.APPROVED.value)
            .order_by(Event.chapter_number, Event.id)
        )
        if user_progress is not None:
            query = query.where(
                (Event.spoiler_chapter.is_(None)) | (Event.spoiler_chapter <= user_progress)
            )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def _timeline_events(self, arc_id: int) -> list[timeline.TimelineEvent]:
        key = self.cache.arc_timeline_key(arc_id)
        cached = await self.cache.get(key)
        if cached is not None:
            return [timeline.TimelineEvent(**item) for item in cached]

        rows = await self.events(arc_id)
        items = [
            timeline.TimelineEvent(
                id=e.id,
                title=e.title,
                chapter_number=e.chapter_number,
                type=e.type,
                description=e.description,
                characters=[c.name for c in e.characters],
                spoiler_chapter=e.spoiler_chapter,
            )
            for e in rows
        ]
        await self.cache.set(key, [asdict(item) for item in items])
        return items

    async def timeline(
        self,
        arc_id: int,
        viewer=None,
        event_types: list[str] | None = None,
        characters: list[str] | None = None,
    ) -> dict:
        """Narrative sections of an arc with spoiler flags for the viewer."""
        arc = await self.get(arc_id)
        events = timeline.filter_events(await self._timeline_events(arc_id), event_types, characters)
        sections = timeline.build_timeline_sections(events, arc.name)
        progress, settings = spoilers.settings_for_user(viewer)
        effective = spoilers.effective_progress(progress, settings)

        def event_out(e: timeline.TimelineEvent) -> dict:
            meta = timeline.event_type_meta(e.type)
            chapter = e.spoiler_chapter or e.chapter_number
            hidden = spoilers.should_hide_spoiler(chapter, progress, settings)
            return {
                "id": e.id,
                "title": e.title,
                "description": e.description,
                "chapter_number": e.chapter_number,
                "type": e.type,
                "type_label": meta["label"],
                "color": meta["color"],
                "characters": e.characters,
                "is_spoiler": hidden,
                "spoiler_label": spoilers.spoiler_label(chapter, effective) if hidden else None,
            }

        return {
            "arc": arc,
            "total_events": len(events),
            "sections": [
                {
                    "section_type": s.section_type,
                    "section_name": s.section_name,
                    "earliest_chapter": s.earliest_chapter,
                    "latest_chapter": s.latest_chapter,
                    "events": [event_out(e) for e in s.events],
                }
                for s in sections
            ],
        }

    async def arcs_for_character(self, character_id: int) -> list[Arc]:
        """Arcs in which the character takes part in an approved event."""
        await get_or_404(self.db, Character, character_id, "Character")
        result = await self.db.execute(
            select(Arc)
            .where(
                Arc.id.in_(
                    select(Event.arc_id).where(
                        Event.status == ModerationStatus.APPROVED.value,
                        Event.characters.any(Character.id == character_id),
                    )
                )
            )
            .order_by(Arc.order, Arc.id)
        )
        return list(result.scalars().all())
