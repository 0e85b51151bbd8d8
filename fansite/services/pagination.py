"""Shared list-endpoint plumbing: page/limit/sort/order parsing and paging."""

import math
from dataclasses import dataclass

from fastapi import Query
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


@dataclass
class PageParams:
    page: int = 1
    limit: int = DEFAULT_LIMIT
    sort: str | None = None
    order: str = "ASC"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def descending(self) -> bool:
        return self.order.upper() == "DESC"


def page_params(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    sort: str | None = Query(default=None, description="Field to sort by"),
    order: str = Query(default="ASC", pattern="^(ASC|DESC|asc|desc)$"),
) -> PageParams:
    """FastAPI dependency collecting the standard list query parameters."""
    return PageParams(page=page, limit=limit, sort=sort, order=order.upper())


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def page_dict(data: list, total: int, params: PageParams) -> dict:
    return {
        "data": data,
        "total": total,
        "page": params.page,
        "per_page": params.limit,
        "total_pages": total_pages(total, params.limit),
    }


async def paginate(
    db: AsyncSession,
    query: Select,
    params: PageParams,
    sort_fields: dict,
    default_sort: list,
) -> dict:
    """
    Count and page a SELECT.

    `sort_fields` whitelists the columns a client may sort by (keyed by the
    public field name); unknown sort fields fall back to `default_sort`.
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar_one()

    column = sort_fields.get(params.sort) if params.sort else None
    if column is not None:
        ordering = [column.desc() if params.descending else column.asc()]
    else:
        ordering = list(default_sort)

    result = await db.execute(
        query.order_by(*ordering).offset(params.offset).limit(params.limit)
    )
    return page_dict(list(result.scalars().unique().all()), total, params)


def escape_like(value: str) -> str:
    """Escape SQL LIKE wildcard characters in user input."""
    return value.replace("\\", "\\\\").replace("%", r"\%").replace("_", r"\_")


def contains(column, value: str):
    """Case-insensitive substring match with escaped wildcards."""
    return column.ilike(f"%{escape_like(value)}%", escape="\\")
