from sqlalchemy import func, select

from fansite import seeding
from fansite.db.models import Arc, Badge, CharacterOrganization, Chapter, Series, User


async def _count(session_factory, model) -> int:
    async with session_factory() as db:
        return (await db.execute(select(func.count()).select_from(model))).scalar_one()


async def test_seeders_populate_reference_data(session_factory):
    assert await seeding.run_seeders(session_factory) is True

    assert await _count(session_factory, Series) == 1
    assert await _count(session_factory, Arc) == len(seeding.ARCS)
    assert await _count(session_factory, Chapter) == len(seeding.CHAPTERS)
    assert await _count(session_factory, Badge) == len(seeding.BADGES)
    assert await _count(session_factory, CharacterOrganization) == len(seeding.MEMBERSHIPS)
    # No SEED_ADMIN_PASSWORD in the test environment
    assert await _count(session_factory, User) == 0

    async with session_factory() as db:
        series_ids = set((await db.execute(select(Arc.series_id))).scalars().all())
    assert len(series_ids) == 1 and None not in series_ids


async def test_seeders_are_idempotent(session_factory):
    await seeding.run_seeders(session_factory)
    await seeding.run_seeders(session_factory)

    assert await _count(session_factory, Arc) == len(seeding.ARCS)
    assert await _count(session_factory, Badge) == len(seeding.BADGES)
    assert await _count(session_factory, CharacterOrganization) == len(seeding.MEMBERSHIPS)
