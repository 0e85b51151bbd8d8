"""Log retention cleanup."""

import logging
from datetime import timedelta

from sqlalchemy import delete

from fansite.config import get_settings
from fansite.db.database import async_session
from fansite.db.models import AppLog, utcnow

logger = logging.getLogger(__name__)


async def cleanup_old_logs(retention_days: int | None = None) -> int:
    """Delete app_logs rows older than the retention period."""
    retention_days = retention_days or get_settings().log_retention_days
    cutoff = utcnow() - timedelta(days=retention_days)

    try:
        async with async_session() as db:
            result = await db.execute(delete(AppLog).where(AppLog.timestamp < cutoff))
            await db.commit()
    except Exception as e:
        logger.error(f"Log cleanup failed: {e}")
        raise

    deleted_count = result.rowcount
    if deleted_count > 0:
        logger.info(f"Log cleanup: deleted {deleted_count} entries older than {retention_days} days")
    else:
        logger.debug(f"Log cleanup: no entries older than {retention_days} days")
    return deleted_count
