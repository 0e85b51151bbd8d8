"""Row lookups shared by the services."""

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.errors import BadRequestError, NotFoundError


async def get_or_404(db: AsyncSession, model, row_id: int, label: str | None = None):
    """Fetch a row by primary key, refreshing any eagerly loaded relationships."""
    result = await db.execute(
        select(model).where(model.id == row_id).execution_options(populate_existing=True)
    )
    row = result.scalar_one_or_none()
    if row is None:
        raise NotFoundError(f"{label or model.__name__} with id {row_id} not found")
    return row


async def ensure_exists(db: AsyncSession, model, row_id: int | None, label: str | None = None) -> None:
    """400 when a referenced row is missing; None references pass."""
    if row_id is None:
        return
    if await db.get(model, row_id) is None:
        raise BadRequestError(f"{label or model.__name__} with id {row_id} does not exist")


async def load_many(db: AsyncSession, model, ids: Iterable[int], label: str | None = None) -> list:
    """Fetch rows for every id, 400 if any is unknown. Order follows `ids`."""
    wanted = list(dict.fromkeys(ids))
    if not wanted:
        return []
    result = await db.execute(select(model).where(model.id.in_(wanted)))
    rows = {row.id: row for row in result.scalars().all()}
    missing = [i for i in wanted if i not in rows]
    if missing:
        name = label or model.__name__
        raise BadRequestError(f"{name} not found: {', '.join(str(i) for i in missing)}")
    return [rows[i] for i in wanted]


def apply_fields(row, values: dict) -> None:
    """Copy plain column values onto a row, unwrapping enums."""
    for key, value in values.items():
        setattr(row, key, getattr(value, "value", value))
