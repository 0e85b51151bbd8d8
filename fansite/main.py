"""Usogui Fansite API - FastAPI Application."""

import logging
from contextlib import asynccontextmanager
from datetime import timezone

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

# Configure logging - cleaner output for development
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)

# Suppress noisy loggers - SQLAlchemy is especially chatty
logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)
logging.getLogger("watchfiles").setLevel(logging.WARNING)

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.api.v1.router import api_router
from fansite.config import get_settings
from fansite.core.cache import get_cache
from fansite.core.errors import setup_exception_handlers
from fansite.core.rate_limit import limiter
from fansite.core.tasks import TaskManager
from fansite.db.database import get_db, init_db
from fansite.middleware import CorrelationIDMiddleware

logger = logging.getLogger(__name__)
settings = get_settings()

scheduler = AsyncIOScheduler(
    timezone=timezone.utc,
    job_defaults={
        # Run a missed job when the host comes back instead of skipping it
        "misfire_grace_time": 60 * 60,
        "coalesce": True,
        "max_instances": 1,
    },
)
task_manager = TaskManager.get_instance()


def schedule_jobs() -> None:
    from fansite.logging.cleanup import cleanup_old_logs
    from fansite.services.auth_service import cleanup_expired_tokens
    from fansite.services.badge_service import expire_user_badges

    # Badge expiry - 00:00 UTC daily
    scheduler.add_job(
        expire_user_badges,
        CronTrigger(hour=0, minute=0),
        id="expire_user_badges",
        replace_existing=True,
    )

    # Stale verification/reset/refresh tokens - hourly
    scheduler.add_job(
        cleanup_expired_tokens,
        CronTrigger(minute=15),
        id="cleanup_expired_tokens",
        replace_existing=True,
    )

    # App logs cleanup - 03:00 UTC daily
    scheduler.add_job(
        cleanup_old_logs,
        CronTrigger(hour=3, minute=0),
        id="app_logs_cleanup",
        replace_existing=True,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    from fansite.logging import AsyncDBLogHandler

    # Startup
    await init_db()

    db_log_handler = None
    if settings.db_logging_enabled:
        db_log_handler = AsyncDBLogHandler(
            batch_size=50,
            flush_interval=5.0,
            min_level=logging.INFO,
            shutdown_timeout=settings.log_handler_shutdown_timeout,
            circuit_breaker_threshold=settings.log_handler_circuit_breaker_threshold,
        )
        db_log_handler.setFormatter(logging.Formatter("%(message)s"))
        db_log_handler.start()
        logging.getLogger().addHandler(db_log_handler)
        logger.info("Database logging handler initialized")

    if settings.scheduler_enabled:
        schedule_jobs()
        scheduler.start()
        logger.info("Scheduler started - badge expiry 00:00 UTC, token cleanup hourly, log cleanup 03:00 UTC")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    await task_manager.cancel_all(timeout=10.0)
    if scheduler.running:
        scheduler.shutdown()
    await get_cache().close()
    if db_log_handler is not None:
        logging.getLogger().removeHandler(db_log_handler)
        db_log_handler.stop()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.app_name,
    description="Fan database and community API for the Usogui manga",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

setup_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Correlation-ID"],
    expose_headers=["X-Correlation-ID"],
)

# Correlation ID middleware for request tracing
app.add_middleware(CorrelationIDMiddleware)

app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/health/db")
async def db_status(db: AsyncSession = Depends(get_db)):
    """Check database connectivity."""
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check DB error: {e}")
        return {"status": "error", "error": "Database health check failed"}

    job = scheduler.get_job("expire_user_badges") if scheduler.running else None
    return {
        "status": "healthy",
        "next_badge_expiry": job.next_run_time.isoformat() if job and job.next_run_time else None,
    }


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": settings.app_name,
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }
