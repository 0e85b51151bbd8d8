"""Application logs API endpoints for admin monitoring."""

from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel
from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.core.auth import require_admin
from fansite.core.rate_limit import limiter
from fansite.db.database import get_db
from fansite.db.models import AppLog, utcnow
from fansite.db.schemas import Page
from fansite.logging.cleanup import cleanup_old_logs
from fansite.services.pagination import PageParams, contains, page_params, paginate

router = APIRouter()

LEVELS = ["ERROR", "WARNING", "INFO", "DEBUG"]


# ==================== Pydantic Schemas ====================

class AppLogResponse(BaseModel):
    id: int
    timestamp: str
    level: str
    source: str
    module: Optional[str]
    message: str
    extra_data: Optional[dict] = None
    correlation_id: Optional[str] = None


class LogStatsResponse(BaseModel):
    total_count: int
    error_count: int
    warning_count: int
    info_count: int
    debug_count: int
    recent_errors: list[AppLogResponse]


def _serialize_log(log: AppLog) -> AppLogResponse:
    return AppLogResponse(
        id=log.id,
        timestamp=log.timestamp.isoformat() if log.timestamp else "",
        level=log.level,
        source=log.source,
        module=log.module,
        message=log.message,
        extra_data=log.extra_data,
        correlation_id=log.correlation_id,
    )


# ==================== Endpoints ====================

@router.get("", response_model=Page[AppLogResponse], dependencies=[Depends(require_admin)])
async def get_logs(
    params: PageParams = Depends(page_params),
    source: Optional[str] = Query(default=None, description="Filter by source"),
    level: Optional[str] = Query(default=None, description="Filter by level: DEBUG, INFO, WARNING, ERROR"),
    search: Optional[str] = Query(default=None, description="Search in message"),
    hours: Optional[int] = Query(default=24, ge=1, le=168, description="Time range in hours (max 168 = 7 days)"),
    db: AsyncSession = Depends(get_db),
):
    """Get paginated application logs with filtering, newest first."""
    query = select(AppLog)
    if source:
        query = query.where(AppLog.source == source.lower())
    if level:
        query = query.where(AppLog.level == level.upper())
    if search:
        query = query.where(contains(AppLog.message, search))
    if hours:
        query = query.where(AppLog.timestamp >= utcnow() - timedelta(hours=hours))

    page = await paginate(
        db, query, params,
        {"timestamp": AppLog.timestamp, "level": AppLog.level},
        default_sort=[desc(AppLog.timestamp), desc(AppLog.id)],
    )
    page["data"] = [_serialize_log(log) for log in page["data"]]
    return page


@router.get("/stats", response_model=LogStatsResponse, dependencies=[Depends(require_admin)])
async def get_log_stats(
    hours: int = Query(default=24, ge=1, le=168, description="Time range in hours"),
    db: AsyncSession = Depends(get_db),
):
    """Get log statistics for dashboard widgets."""
    cutoff = utcnow() - timedelta(hours=hours)

    result = await db.execute(
        select(AppLog.level, func.count())
        .where(AppLog.timestamp >= cutoff)
        .group_by(AppLog.level)
    )
    level_counts = {level: count for level, count in result.all()}

    result = await db.execute(
        select(AppLog)
        .where(AppLog.level == "ERROR")
        .where(AppLog.timestamp >= cutoff)
        .order_by(desc(AppLog.timestamp))
        .limit(10)
    )
    recent_errors = [_serialize_log(log) for log in result.scalars().all()]

    return LogStatsResponse(
        total_count=sum(level_counts.values()),
        error_count=level_counts.get("ERROR", 0),
        warning_count=level_counts.get("WARNING", 0),
        info_count=level_counts.get("INFO", 0),
        debug_count=level_counts.get("DEBUG", 0),
        recent_errors=recent_errors,
    )


@router.delete("/cleanup", dependencies=[Depends(require_admin)])
@limiter.limit("5/minute")
async def cleanup_logs(
    request: Request,
    days: int = Query(default=30, ge=1, le=365, description="Delete logs older than N days"),
):
    """Delete logs older than the given number of days."""
    deleted = await cleanup_old_logs(days)
    return {"deleted_count": deleted}
