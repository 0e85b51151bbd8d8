"""Logging handler that batches records into the app_logs table."""

import asyncio
import json
import logging
import sys
import threading
import time
from datetime import datetime, timezone
from queue import Queue, Empty
from typing import Optional

from fansite.middleware.correlation import get_correlation_id

# Loggers to skip (too verbose)
SKIP_LOGGERS = frozenset([
    "sqlalchemy",
    "httpx",
    "httpcore",
    "asyncio",
    "asyncpg",
    "aiosqlite",
    "uvicorn",
    "fastapi",
])


class AsyncDBLogHandler(logging.Handler):
    """
    Asynchronous logging handler that writes to the database.

    Features:
    - Writes via a background thread with its own event loop and engine
    - Batching (flush every N records or T seconds)
    - Circuit breaker: after repeated failures, entries go to stderr for a minute
    """

    def __init__(
        self,
        batch_size: int = 50,
        flush_interval: float = 5.0,
        min_level: int = logging.INFO,
        max_retries: int = 3,
        shutdown_timeout: float = 30.0,
        circuit_breaker_threshold: int = 5,
    ):
        super().__init__()
        self.batch_size = batch_size
        self.flush_interval = flush_interval
        self.min_level = min_level
        self.max_retries = max_retries
        self.shutdown_timeout = shutdown_timeout
        self.circuit_breaker_threshold = circuit_breaker_threshold

        self._queue: Queue = Queue()
        self._retry_queue: Queue = Queue()
        self._worker_thread: Optional[threading.Thread] = None
        self._running = False
        self._local_engine = None
        self._local_session = None

        self._consecutive_failures = 0
        self._circuit_open = False
        self._circuit_open_until: float = 0.0

    def start(self):
        """Start the background worker thread."""
        if self._running:
            return
        self._running = True
        self._worker_thread = threading.Thread(target=self._worker, daemon=True)
        self._worker_thread.start()

    def stop(self):
        """Stop the worker, flushing what is queued."""
        self._running = False
        if self._worker_thread:
            self._worker_thread.join(timeout=self.shutdown_timeout)
            if self._worker_thread.is_alive():
                print(
                    f"[DB_LOG_HANDLER] Worker thread did not stop within "
                    f"{self.shutdown_timeout}s timeout - some logs may be lost",
                    file=sys.stderr,
                )
            self._worker_thread = None

    def emit(self, record: logging.LogRecord):
        if record.levelno < self.min_level:
            return
        if any(record.name.startswith(skip) for skip in SKIP_LOGGERS):
            return
        # Prevent recursion through our own module
        if record.name.startswith("fansite.logging"):
            return

        try:
            self._queue.put({
                "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).replace(tzinfo=None),
                "level": record.levelname,
                "source": "backend",
                "module": record.name,
                "message": self.format(record),
                "extra_data": getattr(record, "extra_data", None),
                "correlation_id": get_correlation_id() or None,
                "_retry_count": 0,
            })
        except Exception as e:
            print(f"[DB_LOG_HANDLER] Failed to queue log: {type(e).__name__}: {e}", file=sys.stderr)

    def _write_to_fallback(self, entry: dict):
        print(
            "[DB_LOG_HANDLER] " + json.dumps({
                "timestamp": entry["timestamp"].isoformat(),
                "level": entry["level"],
                "module": entry["module"],
                "message": entry["message"][:2000],
            }),
            file=sys.stderr,
        )

    def _worker(self):
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)

        batch = []
        last_flush = time.monotonic()

        while self._running or not self._queue.empty() or not self._retry_queue.empty():
            try:
                batch.append(self._retry_queue.get_nowait())
            except Empty:
                pass
            try:
                batch.append(self._queue.get(timeout=1.0))
            except Empty:
                pass

            now = time.monotonic()
            if batch and (len(batch) >= self.batch_size or now - last_flush >= self.flush_interval):
                loop.run_until_complete(self._flush_batch(batch))
                batch = []
                last_flush = now

        if batch:
            loop.run_until_complete(self._flush_batch(batch))

        if self._local_engine:
            loop.run_until_complete(self._local_engine.dispose())
            self._local_engine = None
            self._local_session = None

        loop.close()

    async def _flush_batch(self, batch: list):
        if self._circuit_open:
            if time.time() < self._circuit_open_until:
                for entry in batch:
                    self._write_to_fallback(entry)
                return
            self._circuit_open = False

        try:
            # Late imports: the handler is installed before the app finishes importing
            from fansite.config import get_settings
            from fansite.db.models import AppLog
            from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

            # Dedicated engine bound to this thread's loop
            if self._local_engine is None:
                self._local_engine = create_async_engine(
                    get_settings().database_url,
                    pool_size=2,
                    max_overflow=2,
                    pool_pre_ping=True,
                )
                self._local_session = async_sessionmaker(
                    self._local_engine, class_=AsyncSession, expire_on_commit=False,
                )

            async with self._local_session() as db:
                for entry in batch:
                    db.add(AppLog(
                        timestamp=entry["timestamp"],
                        level=entry["level"],
                        source=entry["source"],
                        module=entry["module"],
                        message=entry["message"][:5000] if entry["message"] else "",
                        extra_data=entry.get("extra_data"),
                        correlation_id=entry.get("correlation_id"),
                    ))
                await db.commit()

            self._consecutive_failures = 0

        except Exception as e:
            self._consecutive_failures += 1
            print(
                f"[DB_LOG_HANDLER] Flush failed ({self._consecutive_failures} in a row): "
                f"{type(e).__name__}: {e}",
                file=sys.stderr,
            )

            if self._consecutive_failures >= self.circuit_breaker_threshold:
                self._circuit_open = True
                self._circuit_open_until = time.time() + 60
                for entry in batch:
                    self._write_to_fallback(entry)
                return

            for entry in batch:
                if entry["_retry_count"] < self.max_retries:
                    entry["_retry_count"] += 1
                    self._retry_queue.put(entry)
                else:
                    self._write_to_fallback(entry)
