"""Tracked fire-and-forget background tasks.

Outgoing mail and similar side effects run outside the request. Bare
asyncio.create_task() calls can fail silently and are lost on shutdown, so
every such task goes through the TaskManager.
"""

import asyncio
import logging
from typing import Any, Awaitable
from weakref import WeakSet

logger = logging.getLogger(__name__)


class TaskManager:
    """
    Manage background tasks with error logging and shutdown cancellation.

    Usage:
        TaskManager.get_instance().create_task(send_mail(...), name="mail:42")
        ...
        await TaskManager.get_instance().cancel_all()
    """

    _instance: "TaskManager | None" = None

    def __init__(self):
        self._tasks: WeakSet[asyncio.Task] = WeakSet()

    @classmethod
    def get_instance(cls) -> "TaskManager":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance (for testing)."""
        cls._instance = None

    def create_task(self, coro: Awaitable[Any], name: str | None = None) -> asyncio.Task:
        async def wrapped_coro():
            task_name = name or "unnamed"
            try:
                logger.debug(f"Starting background task: {task_name}")
                return await coro
            except asyncio.CancelledError:
                logger.info(f"Background task cancelled: {task_name}")
                raise
            except Exception as e:
                logger.error(f"Background task failed: {task_name} - {type(e).__name__}: {e}")
                raise

        task = asyncio.create_task(wrapped_coro(), name=name)
        self._tasks.add(task)
        return task

    def get_running_tasks(self) -> list[asyncio.Task]:
        return [t for t in self._tasks if not t.done()]

    async def cancel_all(self, timeout: float = 5.0) -> dict:
        """Cancel all tracked tasks and wait for them to finish."""
        running = self.get_running_tasks()
        if not running:
            return {"cancelled": 0, "timed_out": 0}

        logger.info(f"Cancelling {len(running)} background tasks...")
        for task in running:
            task.cancel()

        done, pending = await asyncio.wait(running, timeout=timeout)
        if pending:
            logger.warning(f"{len(pending)} tasks did not finish within {timeout}s timeout")

        return {"cancelled": len(done), "timed_out": len(pending)}
