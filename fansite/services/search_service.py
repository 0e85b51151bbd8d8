"""Site-wide search across the main content types."""

from sqlalchemy import Integer, cast, func, literal_column, null, or_, select, union_all
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.errors import BadRequestError
from fansite.db.models import (
    Arc, Character, Event, Gamble, Guide, ModerationStatus, Organization,
)
from fansite.services.pagination import PageParams, contains, page_dict

APPROVED = ModerationStatus.APPROVED.value

CONTENT_TYPES = [
    ("character", "Characters"),
    ("arc", "Arcs"),
    ("event", "Events"),
    ("gamble", "Gambles"),
    ("guide", "Guides"),
    ("organization", "Organizations"),
]

MAX_SUGGESTIONS = 10


def _selects(query: str, user_progress: int | None) -> dict:
    """One SELECT per content type, all with the same (id, type, title, description, chapter) shape."""
    events = select(
        Event.id, literal_column("'event'").label("type"), Event.title.label("title"),
        Event.description.label("description"), Event.chapter_number.label("chapter_number"),
    ).where(
        Event.status == APPROVED,
        or_(contains(Event.title, query), contains(Event.description, query)),
    )
    if user_progress is not None:
        events = events.where(
            or_(Event.spoiler_chapter.is_(None), Event.spoiler_chapter <= user_progress),
            Event.chapter_number <= user_progress,
        )

    return {
        "character": select(
            Character.id, literal_column("'character'").label("type"), Character.name.label("title"),
            Character.description.label("description"),
            Character.first_appearance_chapter.label("chapter_number"),
        ).where(or_(contains(Character.name, query), contains(Character.description, query))),
        "arc": select(
            Arc.id, literal_column("'arc'").label("type"), Arc.name.label("title"),
            Arc.description.label("description"), Arc.start_chapter.label("chapter_number"),
        ).where(or_(contains(Arc.name, query), contains(Arc.description, query))),
        "event": events,
        "gamble": select(
            Gamble.id, literal_column("'gamble'").label("type"), Gamble.name.label("title"),
            Gamble.description.label("description"), Gamble.chapter_number.label("chapter_number"),
        ).where(or_(contains(Gamble.name, query), contains(Gamble.description, query))),
        "guide": select(
            Guide.id, literal_column("'guide'").label("type"), Guide.title.label("title"),
            Guide.description.label("description"), cast(null(), Integer).label("chapter_number"),
        ).where(
            Guide.status == APPROVED,
            or_(contains(Guide.title, query), contains(Guide.description, query)),
        ),
        "organization": select(
            Organization.id, literal_column("'organization'").label("type"), Organization.name.label("title"),
            Organization.description.label("description"), cast(null(), Integer).label("chapter_number"),
        ).where(or_(contains(Organization.name, query), contains(Organization.description, query))),
    }


class SearchService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def search(
        self,
        query: str,
        params: PageParams,
        content_type: str | None = None,
        user_progress: int | None = None,
    ) -> dict:
        selects = _selects(query.strip(), user_progress)
        if content_type:
            if content_type not in selects:
                raise BadRequestError(f"Unknown content type: {content_type}")
            selects = {content_type: selects[content_type]}

        combined = union_all(*selects.values()).subquery()
        total = (await self.db.execute(select(func.count()).select_from(combined))).scalar_one()
        rows = (await self.db.execute(
            select(combined)
            .order_by(combined.c.type, func.lower(combined.c.title), combined.c.id)
            .offset(params.offset)
            .limit(params.limit)
        )).mappings().all()
        return page_dict([dict(row) for row in rows], total, params)

    async def suggestions(self, query: str) -> list[str]:
        """Distinct names/titles starting or containing the query, shortest first."""
        selects = _selects(query.strip(), None)
        titles = union_all(*(s.with_only_columns(s.selected_columns.title) for s in selects.values())).subquery()
        rows = await self.db.execute(
            select(titles.c.title)
            .group_by(titles.c.title)
            .order_by(func.length(titles.c.title), titles.c.title)
            .limit(MAX_SUGGESTIONS)
        )
        return [row[0] for row in rows]

    @staticmethod
    def content_types() -> list[dict]:
        return [{"type": t, "label": label} for t, label in CONTENT_TYPES]
