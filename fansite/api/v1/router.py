"""API v1 router - aggregates all endpoint routers."""

from fastapi import APIRouter

from fansite.api.v1 import (
    annotations, arcs, auth, badges, chapter_spoilers, chapters, characters,
    events, gambles, guides, logs, media, organizations, quotes, search,
    series, stats, tags, users, volumes,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(series.router, prefix="/series", tags=["series"])
api_router.include_router(arcs.router, prefix="/arcs", tags=["arcs"])
api_router.include_router(chapters.router, prefix="/chapters", tags=["chapters"])
api_router.include_router(volumes.router, prefix="/volumes", tags=["volumes"])
api_router.include_router(characters.router, prefix="/characters", tags=["characters"])
api_router.include_router(organizations.router, prefix="/organizations", tags=["organizations"])
api_router.include_router(events.router, prefix="/events", tags=["events"])
api_router.include_router(gambles.router, prefix="/gambles", tags=["gambles"])
api_router.include_router(quotes.router, prefix="/quotes", tags=["quotes"])
api_router.include_router(tags.router, prefix="/tags", tags=["tags"])
api_router.include_router(chapter_spoilers.router, prefix="/chapter-spoilers", tags=["chapter-spoilers"])
api_router.include_router(guides.router, prefix="/guides", tags=["guides"])
api_router.include_router(annotations.router, prefix="/annotations", tags=["annotations"])
api_router.include_router(media.router, prefix="/media", tags=["media"])
api_router.include_router(badges.router, prefix="/badges", tags=["badges"])
api_router.include_router(search.router, prefix="/search", tags=["search"])
api_router.include_router(stats.router, prefix="/stats", tags=["stats"])
api_router.include_router(logs.router, prefix="/logs", tags=["logs"])
